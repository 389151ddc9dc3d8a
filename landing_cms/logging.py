"""
Landing CMS - Structured Logging

Configures structlog for JSON output in production and colored console
output in development. Request middleware binds a request_id into the
structlog context so every line emitted while serving a request carries it.

Security: never pass passwords, raw tokens or hashes as log fields.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry (PrintLogger has no stdlib name)."""
    record_name = event_dict.pop("logger_name", None)
    event_dict["logger"] = record_name or getattr(logger, "name", "landing_cms")
    return event_dict


def configure_logging(settings: Optional[Any] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        settings: Application settings. Uses LOG_LEVEL and LOG_FORMAT;
                  loaded from the environment when omitted.
    """
    if settings is None:
        from landing_cms.config import get_settings
        settings = get_settings()

    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.LOG_FORMAT == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=True,
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

    # Standard logging for third-party libraries (uvicorn, sqlalchemy)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to a module name."""
    return structlog.get_logger(logger_name=name or "landing_cms")


def bind_request_context(**values: Any) -> None:
    """Bind values (request_id, user_id) to every log line of this request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    """Drop request-scoped log context so it cannot leak between requests."""
    structlog.contextvars.clear_contextvars()
