"""Redis cache client with automatic retry and connection pooling.

This module provides a high-level Redis cache client that includes:
- Connection pooling
- Automatic retry with exponential backoff
- JSON serialization of values
- Prometheus metrics with trace correlation
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, cast

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from flag_service.core.settings import get_redis_settings
from flag_service.infra.metrics.prometheus import (
    cache_hits_total,
    cache_misses_total,
    cache_operation_duration_seconds,
)
from flag_service.infra.metrics.tracing import current_trace_exemplar
from flag_service.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)
redis_settings = get_redis_settings()

_CACHE_NAME = "redis"


def _observe(operation: str, start_time: float) -> None:
    cache_operation_duration_seconds.labels(operation=operation, cache_name=_CACHE_NAME).observe(
        time.perf_counter() - start_time, exemplar=current_trace_exemplar()
    )


class RedisCache:
    """Redis cache client with retry logic and connection pooling.

    Keys are namespaced with ``REDIS_KEY_PREFIX``.

    Example:
        cache = RedisCache()
        await cache.connect()

        await cache.set("key", {"data": "value"}, ttl=3600)
        value = await cache.get("key")
        await cache.delete("key")

        await cache.disconnect()
    """

    def __init__(self, url: str | None = None) -> None:
        self._url = url or redis_settings.redis_url
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis with connection pooling.

        Raises:
            RedisConnectionError: If unable to connect to Redis.
            RuntimeError: If no Redis URL is configured.
        """
        if not self._url:
            msg = "REDIS_URL is not configured"
            raise RuntimeError(msg)

        logger.info(
            "Connecting to Redis",
            extra={
                "max_connections": redis_settings.max_connections,
                "socket_timeout": redis_settings.socket_timeout,
            },
        )

        try:
            self._pool = ConnectionPool.from_url(
                self._url,
                **redis_settings.connection_pool_kwargs(),
            )
            self._client = Redis(connection_pool=self._pool)

            await cast("Awaitable[bool]", self._client.ping())

            logger.info("Redis connection established successfully")
        except Exception as e:
            logger.exception("Failed to connect to Redis", extra={"error": str(e)})
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

        if self._pool:
            await self._pool.aclose()
            self._pool = None

        logger.info("Redis connection closed")

    @property
    def client(self) -> Redis:
        """Get the Redis client instance.

        Raises:
            RuntimeError: If not connected.
        """
        if self._client is None:
            msg = "Redis client not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    @retry(
        max_attempts=redis_settings.max_retries,
        initial_delay=redis_settings.retry_delay,
        max_delay=5.0,
        exceptions=(RedisConnectionError, RedisTimeoutError),
    )
    async def get(self, key: str) -> Any | None:
        """Get a value from cache.

        Returns:
            Cached value (deserialized from JSON) or None if not found.
        """
        start_time = time.perf_counter()
        value = await self.client.get(redis_settings.get_prefixed_key(key))
        _observe("get", start_time)

        exemplar = current_trace_exemplar()
        if value is None:
            cache_misses_total.labels(cache_name=_CACHE_NAME).inc(exemplar=exemplar)
            return None
        cache_hits_total.labels(cache_name=_CACHE_NAME).inc(exemplar=exemplar)

        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    @retry(
        max_attempts=redis_settings.max_retries,
        initial_delay=redis_settings.retry_delay,
        max_delay=5.0,
        exceptions=(RedisConnectionError, RedisTimeoutError),
    )
    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set a value in cache, JSON-serialized, with an optional TTL in seconds."""
        start_time = time.perf_counter()
        result = await self.client.set(
            redis_settings.get_prefixed_key(key), json.dumps(value), ex=ttl
        )
        _observe("set", start_time)
        return bool(result)

    @retry(
        max_attempts=redis_settings.max_retries,
        initial_delay=redis_settings.retry_delay,
        max_delay=5.0,
        exceptions=(RedisConnectionError, RedisTimeoutError),
    )
    async def delete(self, key: str) -> bool:
        """Delete a value from cache.

        Returns:
            True if key was deleted, False if key didn't exist.
        """
        start_time = time.perf_counter()
        result = await self.client.delete(redis_settings.get_prefixed_key(key))
        _observe("delete", start_time)
        return bool(result)


# Global cache instance
_cache: RedisCache | None = None


async def start_cache() -> RedisCache:
    """Initialize the global Redis cache.

    This should be called during application startup.
    """
    global _cache
    logger.info("Starting Redis cache")

    cache = RedisCache()
    await cache.connect()
    _cache = cache
    logger.info("Redis cache started successfully")
    return cache


async def stop_cache() -> None:
    """Close the global Redis cache.

    This should be called during application shutdown.
    """
    global _cache
    logger.info("Stopping Redis cache")

    if _cache:
        try:
            await _cache.disconnect()
            logger.info("Redis cache stopped successfully")
        except Exception as e:
            logger.exception("Error stopping Redis cache", extra={"error": str(e)})
        finally:
            _cache = None
