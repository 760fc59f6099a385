"""Structured logging for the access layer.

Events are snake_case names (``database_opened``, ``appender_flush_failed``)
with key/value context. Loggers are structlog wrappers around standard
library loggers under the ``duckling`` namespace, which carries a
NullHandler. Nothing is written anywhere until the host configures logging
for that namespace or calls setup_logging.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from duckling.domain.value_objects.handles import Handle

LIBRARY_NAME = "duckling"

logging.getLogger(LIBRARY_NAME).addHandler(logging.NullHandler())

_handler: logging.Handler | None = None


def add_library_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("library", LIBRARY_NAME)
    return event_dict


def render_handles(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Render Handle values as ``kind#index@generation`` strings.

    JSON output cannot serialize the dataclass, and the short form is what
    appears in error messages.
    """
    for key, value in event_dict.items():
        if isinstance(value, Handle):
            event_dict[key] = repr(value)
    return event_dict


def setup_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Write the library's events to stderr.

    Args:
        level: Minimum level, one of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_format: ``"json"`` for one object per line, ``"console"`` for
            aligned key=value text.
    """
    global _handler

    numeric_level = logging.getLevelName(level.upper())
    library_logger = logging.getLogger(LIBRARY_NAME)
    if _handler is not None:
        library_logger.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    library_logger.addHandler(_handler)
    library_logger.setLevel(numeric_level)
    library_logger.propagate = False

    renderer: Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_library_context,
            render_handles,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def reset_logging() -> None:
    """Undo setup_logging (useful for testing)."""
    global _handler

    library_logger = logging.getLogger(LIBRARY_NAME)
    if _handler is not None:
        library_logger.removeHandler(_handler)
        _handler = None
    library_logger.setLevel(logging.NOTSET)
    library_logger.propagate = True
    structlog.reset_defaults()


def get_logger(name: str = LIBRARY_NAME, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger over the standard library logger ``name``.

    Names outside the ``duckling`` namespace are not covered by
    setup_logging.
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )
    return logger.bind(**initial_context) if initial_context else logger
