"""Retry with exponential backoff for calls to external services."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""

    def __init__(self, last_exception: Exception, attempts: int) -> None:
        self.last_exception = last_exception
        self.attempts = attempts
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_exception}")


def calculate_delay(
    attempt: int,
    initial_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """Delay before retry ``attempt`` (0-indexed), capped at ``max_delay``."""
    delay = min(initial_delay * (exponential_base**attempt), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())  # noqa: S311
    return delay


def retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    jitter: bool = True,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator for retrying async functions with exponential backoff.

    Only exceptions matching ``exceptions`` are retried; anything else
    propagates immediately. After the last attempt a ``RetryError`` is
    raised, chained to the final failure.

    Example:
        ```python
        @retry(max_attempts=3, initial_delay=0.1, exceptions=(RedisConnectionError,))
        async def get(self, key: str) -> str | None: ...
        ```
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempts = max(max_attempts, 1)
            for attempt in range(attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= attempts - 1:
                        logger.error(
                            "All retry attempts exhausted for %s",
                            func.__name__,
                            extra={"function": func.__name__, "attempts": attempts, "last_exception": str(e)},
                        )
                        raise RetryError(e, attempts) from e

                    delay = calculate_delay(attempt, initial_delay, max_delay, jitter=jitter)
                    logger.warning(
                        "Retrying %s after %.2fs (attempt %d/%d)",
                        func.__name__,
                        delay,
                        attempt + 1,
                        attempts,
                        extra={"function": func.__name__, "exception": str(e)},
                    )
                    await asyncio.sleep(delay)
            raise RuntimeError("Retry logic error: no attempt made")

        return wrapper

    return decorator
