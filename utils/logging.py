"""
Logging layer for the performance module.

Named loggers
-------------
portfolio_logger    analysis pipeline events
performance_logger  timings and slow-call warnings
api_logger          market-data provider calls

Decorators
----------
log_error_handling(severity)              log + re-raise exceptions
log_performance(threshold_seconds)        time the call, warn when slow
log_portfolio_operation_decorator(name)   start / completion events

Structured events (operation, timing, provider health, alerts, errors) are
logged as single-line JSON and, when ``LOG_JSON_EVENTS`` is set, also appended
to ``{LOG_DIR}/<kind>_YYYY-MM-DD.json``.
"""

import functools
import json
import logging
import os
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

LOG_DIR = Path(os.getenv("LOG_DIR", "error_logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON_EVENTS = os.getenv("LOG_JSON_EVENTS", "false").lower() in ("1", "true", "yes")

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)
    return logger


portfolio_logger = _build_logger("perf.portfolio")
performance_logger = _build_logger("perf.performance")
api_logger = _build_logger("perf.api")


# ── JSON event sink ───────────────────────────────────────────────────
def _write_json_event(kind: str, payload: Dict[str, Any]) -> None:
    if not LOG_JSON_EVENTS:
        return
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    path = LOG_DIR / f"{kind}_{datetime.now():%Y-%m-%d}.json"
    with open(path, "a") as f:
        f.write(json.dumps(payload, default=str) + "\n")


def _event(kind: str, **fields) -> Dict[str, Any]:
    payload = {"timestamp": datetime.now().isoformat(), "kind": kind}
    payload.update(fields)
    _write_json_event(kind, payload)
    return payload


# ── structured helpers ────────────────────────────────────────────────
def log_portfolio_operation(
    operation: str,
    portfolio_data: Optional[Dict[str, Any]] = None,
    execution_time: Optional[float] = None,
    status: str = "completed",
) -> None:
    payload = _event(
        "portfolio_operations",
        operation=operation,
        status=status,
        execution_time=execution_time,
        details=portfolio_data or {},
    )
    portfolio_logger.info(json.dumps(payload, default=str))


def log_performance_metric(
    operation: str,
    execution_time: float,
    details: Optional[Dict[str, Any]] = None,
    threshold: Optional[float] = None,
) -> None:
    payload = _event(
        "performance_metrics",
        operation=operation,
        execution_time=round(execution_time, 4),
        threshold=threshold,
        details=details or {},
    )
    if threshold is not None and execution_time > threshold:
        performance_logger.warning(
            f"SLOW: {operation} took {execution_time * 1000:,.0f}ms "
            f"(threshold {threshold * 1000:,.0f}ms)"
        )
    else:
        performance_logger.debug(json.dumps(payload, default=str))


def log_service_health(
    service: str,
    status: str,
    response_time: Optional[float] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    payload = _event(
        "service_health",
        service=service,
        status=status,
        response_time=response_time,
        details=details or {},
    )
    if status == "healthy":
        api_logger.debug(json.dumps(payload, default=str))
    else:
        api_logger.warning(json.dumps(payload, default=str))


def log_critical_alert(
    alert_type: str,
    severity: str,
    message: str,
    action: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    payload = _event(
        "critical_alerts",
        alert_type=alert_type,
        severity=severity,
        message=message,
        action=action,
        details=details or {},
    )
    portfolio_logger.error(json.dumps(payload, default=str))


def log_error_json(source: str, context: Dict[str, Any], exc: BaseException) -> None:
    payload = _event(
        "error",
        source=source,
        context=context,
        error_type=type(exc).__name__,
        error=str(exc),
        traceback="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    portfolio_logger.error(
        f"{source}: {payload['error_type']}: {payload['error']}"
    )


# ── decorators ────────────────────────────────────────────────────────
_SEVERITY_LEVELS = {"low": logging.INFO, "medium": logging.WARNING, "high": logging.ERROR}


def log_error_handling(severity: str = "medium") -> Callable:
    """
    Log any exception escaping the wrapped function, then re-raise it.

    Exceptions are logged once, at the innermost decorated frame.
    """
    level = _SEVERITY_LEVELS.get(severity, logging.WARNING)

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not getattr(e, "_perf_logged", False):
                    portfolio_logger.log(
                        level,
                        f"{func.__name__} failed [{severity}]: {type(e).__name__}: {e}",
                    )
                    _event(
                        "error",
                        source=func.__qualname__,
                        severity=severity,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    try:
                        e._perf_logged = True
                    except AttributeError:
                        pass
                raise
        return wrapper
    return decorator


def log_performance(threshold: float = 1.0) -> Callable:
    """Time the wrapped call and warn when it exceeds *threshold* seconds."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                log_performance_metric(
                    func.__name__, time.perf_counter() - start, threshold=threshold
                )
        return wrapper
    return decorator


def log_portfolio_operation_decorator(operation: str) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            portfolio_logger.debug(f"{operation}: started")
            result = func(*args, **kwargs)
            log_portfolio_operation(
                operation,
                {"function": func.__name__},
                execution_time=time.perf_counter() - start,
            )
            return result
        return wrapper
    return decorator
