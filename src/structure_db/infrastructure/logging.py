"""Structured logging configuration.

Every connection operation ultimately runs on its connection's worker
thread, so records carry the name of the thread that emitted them.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from structure_db.infrastructure.config import ObservabilityConfig


def add_thread_name(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Record which thread emitted the event."""
    event_dict.setdefault("thread", threading.current_thread().name)
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Route structure-db events through structlog.

    ``log_format="json"`` emits one JSON object per event; ``"console"``
    renders key=value pairs, coloured when stdout is a terminal.
    """
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_thread_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from(observability: ObservabilityConfig) -> None:
    """Apply the logging section of a loaded configuration."""
    setup_logging(level=observability.log_level, log_format=observability.log_format)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Return a structlog logger for ``name`` with ``initial_context`` bound."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
