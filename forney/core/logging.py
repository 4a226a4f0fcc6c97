"""
forney/core/logging.py

Structured logging configuration using structlog.

The package never configures logging on import; applications call
``configure_logging`` once at startup.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import structlog
from structlog.typing import Processor

from forney.core.config import settings


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """
    Configure structlog for the engine.

    Args:
        level: Minimum log level name (defaults to ``settings.log_level``)
        json: Render JSON lines instead of console output (defaults to ``settings.log_json``)
    """
    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if json is None else json

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.WARNING)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
