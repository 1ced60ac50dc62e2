"""
Structured logging for randkey.

randkey is a library: it logs through structlog into the stdlib "randkey"
logger and leaves the root logger to the host application.
"""
from __future__ import annotations

import logging
import sys

import structlog

LIBRARY_LOGGER = "randkey"


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Route randkey's structlog events through the stdlib "randkey" logger.

    The level applies to the "randkey" logger only. A stderr handler is
    attached to it only when neither it nor the root logger has one, so a
    host that already configured logging keeps its own handlers and format.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: JSON lines (True) or coloured console output (False)
    """
    lib_logger = logging.getLogger(LIBRARY_LOGGER)
    lib_logger.setLevel(getattr(logging, log_level.upper()))
    if not lib_logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        lib_logger.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging_from_settings() -> None:
    """Apply LOG_LEVEL / LOG_JSON from the environment-backed settings."""
    from randkey.config import get_settings

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a randkey module; pass `__name__`."""
    return structlog.get_logger(name)
