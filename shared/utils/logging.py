"""
Readiness Engine Logging

structlog for every service and worker: JSON lines in production, a coloured
console in debug. Context (request id, Celery task, the user and category
being scored) travels in contextvars, so a guard decision logged deep in the
pipeline still carries the request that caused it.
"""

import logging
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from shared.utils.config import get_settings

# Chatty dependencies kept at WARNING unless debugging
QUIET_LOGGERS = ("sqlalchemy.engine", "kombu", "celery.worker.strategy", "uvicorn.access")


def enum_values(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Log enum members (sources, priorities, guard reasons) as their plain value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger from settings."""
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        enum_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(stream=sys.stdout, level=level, format="%(message)s")
    if not settings.debug:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **initial_context: Any) -> structlog.BoundLogger:
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


def bind_request_context(request_id: str, **extra: Any) -> None:
    """Bind the HTTP request id; the middleware clears it after the response."""
    structlog.contextvars.bind_contextvars(request_id=request_id, **extra)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def task_context(task_id: str, task_name: str, **extra: Any) -> Iterator[None]:
    """Celery task context, unbound when the task body returns."""
    with structlog.contextvars.bound_contextvars(task_id=task_id, task_name=task_name, **extra):
        yield


@contextmanager
def calculation_context(user_id: int, category_id: int, **extra: Any) -> Iterator[None]:
    """
    Tag guard, scoring and roadmap logs with the (user, category) being scored.

    Nested calculations (a mentor review triggering a recalculation inside
    the same request) restore the outer context on exit.
    """
    with structlog.contextvars.bound_contextvars(user_id=user_id, category_id=category_id, **extra):
        yield
