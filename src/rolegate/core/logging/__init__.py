"""Structured logging configuration."""

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog


if TYPE_CHECKING:
    from rolegate.config import Settings


def configure_logging(settings: "Settings", stream: TextIO | None = None) -> None:
    """Configure structlog for the library and its host process.

    Production environments render JSON lines; everything else uses
    the console renderer. Loggers are not cached, so calling this again
    reroutes module-level loggers from ``structlog.get_logger()``.

    Args:
        settings: Library settings (environment and log level)
        stream: Output stream, stdout when omitted
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
    )


__all__ = [
    "configure_logging",
]
