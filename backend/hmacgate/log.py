"""Structured logging setup."""

from __future__ import annotations

import logging

import structlog

from .config import resolve_log_level


def configure_logging(level: str | None = None) -> None:
    """Configure structlog to emit JSON lines through the standard library."""

    level_name = level or resolve_log_level()
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
