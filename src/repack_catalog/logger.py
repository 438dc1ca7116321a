"""
Logging for sync runs, the API server and CLI commands.

Every component logs through a structlog logger bound with a
``component`` key (source, enrichment, synchronizer, store, cache,
api, cli). Log lines go to stderr so that CLI commands can keep
stdout for their JSON result.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import Processor

from repack_catalog.config import LoggingConfig, get_settings

# Standard-library loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _renderer(config: LoggingConfig) -> "Processor":
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        config: Logging section to apply (defaults to the global settings)
    """
    config = config or get_settings().logging

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if config.include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    processors.append(_renderer(config))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, config.level),
    )
    if config.level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Return a structlog logger with ``initial_context`` bound.

    Example:
        >>> logger = get_logger(__name__, component="synchronizer")
        >>> logger.info("Sync started", mode="full")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
