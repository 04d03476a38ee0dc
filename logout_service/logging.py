"""Structured logging setup for the logout service."""

import logging
import sys

import structlog

# Below DEBUG; full request bodies and per-request network traffic.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


def trace_enabled() -> bool:
    """Whether ``LOG_LEVEL=trace`` is in effect."""
    return logging.getLogger().isEnabledFor(TRACE)


def configure_logging(log_level: str = "info") -> None:
    """Configure structlog to emit one JSON object per event.

    The request id is carried in ``structlog.contextvars`` so every module
    logs through its own logger and still tags events with ``rid``.
    """
    level = _LEVELS.get(log_level.lower(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
