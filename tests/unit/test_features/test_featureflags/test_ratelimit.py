"""Tests for per-flag, per-user evaluation rate limiters."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from flag_service.features.featureflags.ratelimit import (
    InMemoryFeatureRateLimiter,
    RedisFeatureRateLimiter,
)
from flag_service.infra.ratelimit import RateLimiter


@pytest.mark.asyncio
async def test_in_memory_capacity_per_window(rate_limiter: InMemoryFeatureRateLimiter, limiter_clock) -> None:
    assert [await rate_limiter.consume("beta", "u1", 2) for _ in range(3)] == [True, True, False]

    limiter_clock.advance(59)
    assert await rate_limiter.consume("beta", "u1", 2) is False

    limiter_clock.advance(1)
    assert await rate_limiter.consume("beta", "u1", 2) is True


@pytest.mark.asyncio
async def test_in_memory_keys_are_independent(rate_limiter: InMemoryFeatureRateLimiter) -> None:
    assert await rate_limiter.consume("beta", "u1", 1) is True
    assert await rate_limiter.consume("beta", "u2", 1) is True
    assert await rate_limiter.consume("gamma", "u1", 1) is True
    assert await rate_limiter.consume("beta", "u1", 1) is False


@pytest.mark.asyncio
async def test_in_memory_concurrent_consumers_respect_limit(rate_limiter: InMemoryFeatureRateLimiter) -> None:
    results = await asyncio.gather(*(rate_limiter.consume("beta", "u1", 5) for _ in range(20)))

    assert sum(results) == 5


@pytest.mark.asyncio
async def test_in_memory_reset(rate_limiter: InMemoryFeatureRateLimiter) -> None:
    await rate_limiter.consume("beta", "u1", 1)

    await rate_limiter.reset()

    assert await rate_limiter.consume("beta", "u1", 1) is True


@pytest.mark.asyncio
async def test_redis_limiter_keys_by_flag_and_user() -> None:
    limiter = AsyncMock(spec=RateLimiter)
    limiter.check_limit.return_value = (False, {"remaining": 0})
    feature_limiter = RedisFeatureRateLimiter(limiter, window_seconds=30)

    assert await feature_limiter.consume("beta", "u1", 3) is False
    limiter.check_limit.assert_awaited_once_with("beta:u1", limit=3, window=30)


@pytest.mark.asyncio
async def test_redis_rate_limiter_allows_when_redis_fails() -> None:
    redis = AsyncMock()
    redis.eval.side_effect = ConnectionError("down")
    limiter = RateLimiter(redis, key_prefix="ratelimit")

    allowed, meta = await limiter.check_limit("beta:u1", limit=1, window=60)

    assert allowed is True
    assert meta["limit"] == 1


@pytest.mark.asyncio
async def test_redis_rate_limiter_reports_denial() -> None:
    redis = AsyncMock()
    redis.eval.return_value = [0, 0]
    limiter = RateLimiter(redis, key_prefix="ratelimit")

    allowed, meta = await limiter.check_limit("beta:u1", limit=1, window=60)

    assert allowed is False
    assert meta["retry_after"] == 60
    assert redis.eval.await_args.args[2] == "ratelimit:beta:u1"
