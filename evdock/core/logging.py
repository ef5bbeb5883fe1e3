"""Structured logging setup using structlog."""

import logging
import sys

import structlog

from evdock.core.config import settings


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        level: Log level name (defaults to settings.log_level)
        log_format: "json" for machine-readable output, anything else
            for the console renderer (defaults to settings.log_format)
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    fmt = log_format or settings.log_format

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    # Reduce noise from external libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
