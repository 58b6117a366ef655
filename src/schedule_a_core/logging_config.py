"""Structured logging configuration using structlog."""

import logging
import sys

import structlog
from structlog.types import Processor

from .config import LogFormat, ScheduleAConfig


def configure_logging(config: ScheduleAConfig) -> None:
    """Configure structlog for the engine and its CLI.

    Development mode: ConsoleRenderer for readability.
    Other environments: JSONRenderer for log shipping.

    Output goes to stderr so the CLI can stream reports on stdout.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.effective_log_format == LogFormat.JSON:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, config.log_level),
        force=True,
    )
