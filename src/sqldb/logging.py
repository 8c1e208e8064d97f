"""Structured logging setup for sqldb.

All modules log through structlog with snake_case event names and
key/value context, e.g. ``log.info("migration_applied", file="0001.sql")``.
"""

from __future__ import annotations

import logging
import sys

import structlog

LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def setup_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog for the process.

    Args:
        json_output: Render events as JSON lines instead of console text.
        level: Minimum level to emit (DEBUG, INFO, WARNING, ERROR).

    Raises:
        ValueError: If level is not a known level name.
    """
    level = level.upper()
    if level not in LEVELS:
        raise ValueError(f"log level must be one of: {LEVELS}")

    renderer: structlog.typing.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Get a logger bound to a component name.

    The logger resolves configuration lazily, so module-level loggers pick up
    a later ``setup_logging`` call.
    """
    return structlog.get_logger(component=name)
