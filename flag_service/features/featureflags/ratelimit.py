"""Per-flag, per-user evaluation rate limits.

A flag with ``rate_limit = N`` admits at most N positive evaluations per
user per window (``FLAGS_RATE_LIMIT_WINDOW_SECONDS``, 60 by default).
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from flag_service.infra.ratelimit import RateLimiter


class FeatureRateLimiter(Protocol):
    """Consumes one unit of a (flag, user) window."""

    async def consume(self, feature: str, user_id: str, limit: int) -> bool:
        """Return True if the evaluation is within the limit."""
        ...


class InMemoryFeatureRateLimiter:
    """Fixed-window counters held in process memory.

    Each process keeps its own counters; use the Redis limiter to share
    windows across instances.
    """

    def __init__(
        self,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        # (feature, user) -> (window start, count)
        self._windows: dict[tuple[str, str], tuple[float, int]] = {}

    async def consume(self, feature: str, user_id: str, limit: int) -> bool:
        async with self._lock:
            now = self._clock()
            self._evict(now)

            key = (feature, user_id)
            started, count = self._windows.get(key, (now, 0))
            if count >= limit:
                return False
            self._windows[key] = (started, count + 1)
            return True

    async def reset(self) -> None:
        async with self._lock:
            self._windows.clear()

    def _evict(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self._window]
        for key in expired:
            del self._windows[key]


class RedisFeatureRateLimiter:
    """Sliding-window counters in Redis, shared by every instance.

    If Redis fails the evaluation is allowed through.
    """

    def __init__(self, limiter: RateLimiter, window_seconds: int = 60) -> None:
        self._limiter = limiter
        self._window = window_seconds

    async def consume(self, feature: str, user_id: str, limit: int) -> bool:
        allowed, _ = await self._limiter.check_limit(
            f"{feature}:{user_id}",
            limit=limit,
            window=self._window,
        )
        return allowed


__all__ = ["FeatureRateLimiter", "InMemoryFeatureRateLimiter", "RedisFeatureRateLimiter"]
