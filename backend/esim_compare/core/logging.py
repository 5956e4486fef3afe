"""structlog configuration shared by the CLI and scheduled runs."""

import logging
import sys

import structlog

from esim_compare.config import Settings, settings as default_settings


def configure_logging(settings: Settings = default_settings) -> None:
    """Configure stdlib logging and structlog.

    Console rendering in DEBUG, JSON lines otherwise so run logs can be
    shipped as-is.

    Args:
        settings: Settings providing DEBUG and LOG_LEVEL
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.DEBUG
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
