"""Result cache and evaluation rate limiter lifespan management.

Sets ``app.state.result_cache`` and ``app.state.feature_rate_limiter``,
which the feature flag dependencies hand to the evaluator. With Redis up it
also sets ``app.state.request_rate_limiter`` for the request rate limit
middleware.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flag_service.features.featureflags.cache import NullResultCache, RedisResultCache
from flag_service.features.featureflags.ratelimit import (
    InMemoryFeatureRateLimiter,
    RedisFeatureRateLimiter,
)
from flag_service.infra.cache.redis import start_cache, stop_cache
from flag_service.infra.ratelimit import RateLimiter

from .registry import lifespan_registry

if TYPE_CHECKING:
    from fastapi import FastAPI

    from flag_service.core.settings.app import AppSettings
    from flag_service.core.settings.flags import FeatureFlagSettings
    from flag_service.core.settings.redis import RedisSettings
    from flag_service.infra.cache.redis import RedisCache

logger = logging.getLogger(__name__)


@lifespan_registry.register(name="cache", startup_order=15, requires=["core"])
async def startup_cache(
    app: FastAPI,
    app_settings: AppSettings,
    redis_settings: RedisSettings,
    flag_settings: FeatureFlagSettings,
    **kwargs: object,
) -> None:
    """Connect to Redis, degrading to an uncached evaluator if it is unavailable.

    With ``REDIS_STARTUP_REQUIRE_CACHE=true`` an unreachable Redis fails
    startup instead.
    """
    redis: RedisCache | None = None
    if redis_settings.is_configured:
        try:
            redis = await start_cache()
        except Exception as e:
            if redis_settings.startup_require_cache:
                logger.error(
                    "Redis cache required but unavailable, failing startup",
                    extra={"error": str(e), "startup_require_cache": True},
                )
                raise
            logger.warning(
                "Redis cache unavailable, continuing in degraded mode",
                extra={"error": str(e), "startup_require_cache": False},
            )

    if redis is not None:
        app.state.result_cache = RedisResultCache(redis)
        app.state.request_rate_limiter = RateLimiter(
            redis.client,
            key_prefix=redis_settings.get_prefixed_key("ratelimit:http"),
            default_limit=app_settings.rate_limit_requests,
            default_window=app_settings.rate_limit_window_seconds,
        )
    else:
        app.state.result_cache = NullResultCache()

    if flag_settings.rate_limit_backend == "redis" and redis is not None:
        app.state.feature_rate_limiter = RedisFeatureRateLimiter(
            RateLimiter(redis.client, key_prefix=redis_settings.get_prefixed_key("ratelimit")),
            window_seconds=flag_settings.rate_limit_window_seconds,
        )
    else:
        if flag_settings.rate_limit_backend == "redis":
            logger.warning("Redis rate limiting requested without Redis, using in-memory counters")
        app.state.feature_rate_limiter = InMemoryFeatureRateLimiter(
            window_seconds=flag_settings.rate_limit_window_seconds,
        )

    logger.info(
        "Evaluation cache ready",
        extra={
            "cache": type(app.state.result_cache).__name__,
            "rate_limiter": type(app.state.feature_rate_limiter).__name__,
        },
    )


@lifespan_registry.register(name="cache")
async def shutdown_cache(app: FastAPI, **kwargs: object) -> None:
    await stop_cache()
    app.state.result_cache = NullResultCache()
    app.state.request_rate_limiter = None
