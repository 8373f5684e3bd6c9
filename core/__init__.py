"""Core analysis services, configuration objects and results."""
