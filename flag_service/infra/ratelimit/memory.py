"""In-process sliding window rate limiting.

Used for request limits when Redis is not configured. Windows live in the
process, so each instance of the service counts on its own.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections import deque
from collections.abc import Callable


class InMemoryRateLimiter:
    """Sliding window limiter with the same ``check_limit`` contract as RateLimiter.

    Example:
        limiter = InMemoryRateLimiter(default_limit=100, default_window=900)
        allowed, meta = await limiter.check_limit("ip:10.0.0.1")
    """

    def __init__(
        self,
        default_limit: int = 100,
        default_window: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_limit = default_limit
        self.default_window = default_window
        self._clock = clock
        self._lock = asyncio.Lock()
        # key -> timestamps of admitted requests, oldest first
        self._hits: dict[str, deque[float]] = {}

    async def check_limit(
        self,
        key: str,
        limit: int | None = None,
        window: int | None = None,
        cost: int = 1,
    ) -> tuple[bool, dict[str, int]]:
        """Consume ``cost`` units from the window for ``key``.

        Returns:
            Tuple of (is_allowed, metadata) where metadata contains
            limit, remaining, reset (unix time) and retry_after (seconds).
        """
        limit = limit or self.default_limit
        window = window or self.default_window

        async with self._lock:
            now = self._clock()
            self._evict(now, window)

            hits = self._hits.setdefault(key, deque())
            allowed = len(hits) + cost <= limit
            if allowed:
                hits.extend([now] * cost)
                remaining = limit - len(hits)
                retry_after = 0
            else:
                remaining = 0
                retry_after = max(1, math.ceil(hits[0] + window - now)) if hits else window
            reset = int(hits[0] + window) if hits else int(now + window)
            if not hits:
                del self._hits[key]

        return allowed, {
            "limit": limit,
            "remaining": remaining,
            "reset": reset,
            "retry_after": retry_after,
        }

    async def reset(self) -> None:
        async with self._lock:
            self._hits.clear()

    def _evict(self, now: float, window: int) -> None:
        cutoff = now - window
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]
