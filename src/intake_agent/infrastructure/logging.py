"""Structured logging setup: structlog on top of the standard logging module."""

from __future__ import annotations

import logging
import sys

import structlog

from intake_agent.config.settings import EngineSettings


def setup_logging(settings: EngineSettings) -> None:
    """
    Configure structlog and the root logger. Console output in development,
    JSON lines everywhere else. Call once at process start.
    """
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment == "development":
        final_processor = structlog.dev.ConsoleRenderer()
    else:
        final_processor = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_processor,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    # Replace rather than stack handlers when called twice.
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.log_level.upper())

    logging.getLogger("httpx").setLevel(logging.WARNING)
