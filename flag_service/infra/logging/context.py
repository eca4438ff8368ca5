"""Context management for structured logging.

Request-scoped fields (request id, user id, path) live in a ContextVar and
are copied onto every log record by ``ContextInjectingFilter``. Each asyncio
task sees its own copy, so concurrent requests never mix context.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        # In middleware
        set_log_context(request_id="abc-123", path="/api/v1/features")

        # In the auth dependency
        set_log_context(user_id=str(user.id))
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current task."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the current context into each LogRecord.

    Attached to the root logger via dictConfig, so formatters (especially
    JSONFormatter) see request_id and user_id without any call-site changes.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()

        for key, value in context.items():
            # Don't overwrite existing attributes
            if not hasattr(record, key):
                setattr(record, key, value)

        return True
