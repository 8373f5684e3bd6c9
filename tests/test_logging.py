"""Tests for the logging decorators and structured event helpers."""
import json
import logging

import pytest

import utils.logging as perf_logging
from core.exceptions import AnalysisError
from utils.logging import (
    log_critical_alert,
    log_error_handling,
    log_performance,
    log_portfolio_operation_decorator,
    log_service_health,
)


class TestDecorators:
    def test_error_handling_logs_and_reraises(self, caplog):
        @log_error_handling("high")
        def boom():
            raise AnalysisError("bad regression", analysis_type="capm")

        with caplog.at_level(logging.INFO, logger="perf.portfolio"):
            with pytest.raises(AnalysisError) as exc:
                boom()
        assert exc.value.analysis_type == "capm"
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "boom failed [high]" in errors[0].getMessage()

    def test_error_logged_once_through_nested_calls(self, caplog):
        @log_error_handling("low")
        def inner():
            raise ValueError("x")

        @log_error_handling("high")
        def outer():
            return inner()

        with caplog.at_level(logging.INFO, logger="perf.portfolio"):
            with pytest.raises(ValueError):
                outer()
        failures = [r for r in caplog.records if "failed [" in r.getMessage()]
        assert len(failures) == 1
        assert failures[0].levelno == logging.INFO

    def test_slow_call_warning(self, caplog):
        @log_performance(-1.0)
        def quick():
            return 42

        with caplog.at_level(logging.WARNING, logger="perf.performance"):
            assert quick() == 42
        assert any("SLOW: quick" in r.getMessage() for r in caplog.records)

    def test_operation_decorator_preserves_result(self, caplog):
        @log_portfolio_operation_decorator("demo")
        def add(a, b):
            return a + b

        with caplog.at_level(logging.INFO, logger="perf.portfolio"):
            assert add(2, 3) == 5
        assert add.__name__ == "add"
        assert any('"operation": "demo"' in r.getMessage() for r in caplog.records)


class TestStructuredEvents:
    def test_service_health_warns_when_down(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="perf.api"):
            log_service_health("FMP_API", "down", 1.2, {"status_code": 500})
        warning = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert json.loads(warning[0].getMessage())["status"] == "down"

    def test_json_event_files(self, tmp_path, monkeypatch):
        monkeypatch.setattr(perf_logging, "LOG_JSON_EVENTS", True)
        monkeypatch.setattr(perf_logging, "LOG_DIR", tmp_path)
        log_critical_alert("api_connection_failure", "high", "FMP unreachable")
        files = list(tmp_path.glob("critical_alerts_*.json"))
        assert len(files) == 1
        event = json.loads(files[0].read_text().splitlines()[0])
        assert event["alert_type"] == "api_connection_failure"

    def test_no_files_by_default(self, tmp_path, monkeypatch):
        monkeypatch.setattr(perf_logging, "LOG_JSON_EVENTS", False)
        monkeypatch.setattr(perf_logging, "LOG_DIR", tmp_path / "logs")
        log_critical_alert("x", "low", "y")
        assert not (tmp_path / "logs").exists()
