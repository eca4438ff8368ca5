"""CLI utilities for running async operations and formatting output."""

from flag_service.cli.utils.async_runner import coro
from flag_service.cli.utils.formatters import (
    error,
    evaluation_result,
    flag_summary,
    header,
    info,
    success,
    warning,
)

__all__ = [
    "coro",
    "error",
    "evaluation_result",
    "flag_summary",
    "header",
    "info",
    "success",
    "warning",
]
