"""Structured logging setup for the shop API.

Every entry carries the application name and environment. Output is one
JSON object per line in deployed environments and a coloured console
rendering during development.
"""

import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

DEFAULT_APP_NAME = "shop-api"

# Chatty third-party loggers kept at WARNING unless running at DEBUG.
# uvicorn.access duplicates the request_completed entries.
QUIET_LOGGERS = ("pymongo", "uvicorn.access")


def add_app_context(app_name: str, environment: str) -> Processor:
    """Processor tagging entries with ``app`` and ``environment`` (caller values win)."""

    def processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def _processor_chain(app_name: str, environment: str, json_logs: bool) -> List[Processor]:
    renderer: Processor = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        add_app_context(app_name, environment),
        renderer,
    ]


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: str = DEFAULT_APP_NAME,
    environment: str = "development",
) -> None:
    """Configure structlog and the standard library root logger.

    Safe to call again; the most recent level and format win.

    Args:
        log_level: Root log level name
        json_logs: Render JSON lines instead of console output
        service_name: Value of the ``app`` key on every entry
        environment: Value of the ``environment`` key on every entry
    """
    level = logging.getLevelName(log_level.upper())

    structlog.configure(
        processors=_processor_chain(service_name or DEFAULT_APP_NAME, environment, json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level)

    quiet_level = level if level == logging.DEBUG else max(level, logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def bind_context(**kwargs: Any) -> None:
    """Attach key-value pairs to every entry logged in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
