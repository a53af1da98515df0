"""
Structured logging configuration with structlog.

Production output is JSON for log aggregation; every other environment gets
the colored console renderer.

Usage:
    from core.logging import configure_logging

    configure_logging(settings.APP_ENV)

    logger = structlog.get_logger(__name__)
    logger.info("proposal_created", subject="item-42")
"""

import logging

import structlog
from structlog.typing import Processor

from core.config import settings


def _get_log_level(level_name: str) -> int:
    """Map a level name to the logging level integer, defaulting to INFO."""
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging(environment: str | None = None, level: str | None = None) -> None:
    """
    Configure structlog for the application.

    Should be called once at startup, before the first logger is used.
    """
    environment = environment or settings.APP_ENV
    level = level or settings.LOG_LEVEL

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
