"""Structured logging setup.

structlog is configured once per process. Development gets a colored
console renderer, everything else gets one JSON object per line. Request
scoped values (request id, method, path) are merged in from contextvars.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from users_api.config.settings import Settings


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Move the name bound by :func:`get_logger` to the ``logger`` key."""
    name = event_dict.pop("_logger_name", None)
    event_dict["logger"] = name or getattr(logger, "name", None) or "users_api"
    return event_dict


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Application settings; ``log_level``, ``log_format`` and
            ``environment`` are read.
    """
    level = getattr(logging, settings.log_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=settings.is_development,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # third-party libraries (werkzeug, sqlalchemy) keep using stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a bound logger tagged with ``name``."""
    return structlog.get_logger(_logger_name=name or "users_api")
