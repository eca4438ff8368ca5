"""Result Cache: evaluation results keyed by flag, version and user.

Keys look like ``feature:<name>:<version>:<user_id|global>``. Values are
booleans written with a TTL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from redis.exceptions import RedisError

from flag_service.features.featureflags.exceptions import CacheUnavailableError
from flag_service.utils.retry import RetryError

if TYPE_CHECKING:
    from flag_service.infra.cache.redis import RedisCache

GLOBAL_SCOPE = "global"


def build_cache_key(
    name: str,
    version: str,
    user_id: str | None = None,
    *,
    prefix: str = "feature",
) -> str:
    """Cache key for one evaluation context."""
    return f"{prefix}:{name}:{version}:{user_id or GLOBAL_SCOPE}"


class ResultCache(Protocol):
    """Cache contract used by the evaluator and the admin service.

    Implementations raise CacheUnavailableError when the backend fails.
    """

    async def get(self, key: str) -> bool | None: ...

    async def set(self, key: str, value: bool, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisResultCache:
    """ResultCache over the shared Redis client."""

    def __init__(self, redis: RedisCache) -> None:
        self._redis = redis

    async def get(self, key: str) -> bool | None:
        try:
            value = await self._redis.get(key)
        except (RedisError, RetryError, RuntimeError) as e:
            raise CacheUnavailableError("get", key, e) from e
        if value is None:
            return None
        return bool(value)

    async def set(self, key: str, value: bool, ttl_seconds: int) -> None:
        try:
            await self._redis.set(key, value, ttl=ttl_seconds)
        except (RedisError, RetryError, RuntimeError) as e:
            raise CacheUnavailableError("set", key, e) from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except (RedisError, RetryError, RuntimeError) as e:
            raise CacheUnavailableError("delete", key, e) from e


class NullResultCache:
    """Always misses. Used when Redis is not configured or not reachable."""

    async def get(self, key: str) -> bool | None:
        return None

    async def set(self, key: str, value: bool, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


__all__ = [
    "GLOBAL_SCOPE",
    "NullResultCache",
    "RedisResultCache",
    "ResultCache",
    "build_cache_key",
]
