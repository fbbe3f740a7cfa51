"""
Centralized logging configuration for the Tollgate admin API.

structlog renders JSON in production and a colored console in development.
Stdlib loggers (uvicorn, sqlalchemy) are routed through the same formatter.
"""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

import structlog
from structlog.types import EventDict, Processor

_APP_NAME = "tollgate-api"

# Libraries whose INFO output drowns out request logs
_NOISY_LOGGERS = ("asyncio", "httpx", "sqlalchemy.engine", "asyncpg", "redis")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name."""
    event_dict.setdefault("app", _APP_NAME)
    return event_dict


def reorder_keys(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Put level, timestamp and event first so JSON lines scan well."""
    ordered: EventDict = {}
    for key in ("level", "timestamp", "event"):
        if key in event_dict:
            ordered[key] = event_dict.pop(key)
    ordered.update(event_dict)
    return ordered


def utc_timestamper(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO8601 UTC timestamp with millisecond precision."""
    now = datetime.now(UTC)
    event_dict["timestamp"] = now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
    return event_dict


def configure_logging(
    json_logs: bool = True,
    log_level: str = "INFO",
    app_name: str = _APP_NAME,
) -> None:
    """Configure structlog and the stdlib root logger."""
    global _APP_NAME  # noqa: PLW0603
    _APP_NAME = app_name
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        utc_timestamper,
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if json_logs:
        renderers: list[Processor] = [
            reorder_keys,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
