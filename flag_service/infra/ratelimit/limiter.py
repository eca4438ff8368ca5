"""Redis-backed sliding window rate limiting."""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Atomic sliding window: drop expired members, count, then admit if room
_SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local cost = tonumber(ARGV[4])
local member = ARGV[5]

redis.call('ZREMRANGEBYSCORE', key, 0, now - window)

local current = redis.call('ZCARD', key)

if current + cost <= limit then
    for i = 1, cost do
        redis.call('ZADD', key, now, member .. ':' .. i)
    end
    redis.call('EXPIRE', key, window)
    return {1, limit - (current + cost)}
else
    return {0, 0}
end
"""


class RateLimiter:
    """Redis-backed sliding window rate limiter.

    Counters live in Redis, so every instance of the service shares the
    same window for a key.

    Example:
        limiter = RateLimiter(redis_client)
        allowed, meta = await limiter.check_limit("feature:beta:user-1", limit=5, window=60)
    """

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "ratelimit",
        default_limit: int = 100,
        default_window: int = 60,
    ) -> None:
        self.redis = redis
        self.key_prefix = key_prefix
        self.default_limit = default_limit
        self.default_window = default_window

    def _make_key(self, identifier: str) -> str:
        # Hash long identifiers to keep key size reasonable
        if len(identifier) > 50:
            identifier = hashlib.sha256(identifier.encode()).hexdigest()[:16]
        return f"{self.key_prefix}:{identifier}"

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

            If Redis is unavailable the request is allowed.
        """
        limit = limit or self.default_limit
        window = window or self.default_window

        redis_key = self._make_key(key)
        now = time.time()

        try:
            result = await self.redis.eval(  # type: ignore[misc]
                _SLIDING_WINDOW_SCRIPT,
                1,
                redis_key,
                limit,
                window,
                now,
                cost,
                uuid.uuid4().hex,
            )
        except Exception as e:
            logger.error(
                "Rate limit check failed, allowing request",
                extra={"key": key, "error": str(e)},
                exc_info=True,
            )
            return True, {
                "limit": limit,
                "remaining": limit - 1,
                "reset": int(now + window),
                "retry_after": 0,
            }

        allowed = bool(result[0])
        remaining = int(result[1])

        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={"key": key, "limit": limit, "window": window},
            )

        return allowed, {
            "limit": limit,
            "remaining": remaining,
            "reset": int(now + window),
            "retry_after": window if not allowed else 0,
        }
