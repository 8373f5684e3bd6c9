"""Logging and serialization utilities."""
