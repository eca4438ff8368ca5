"""FastAPI dependencies wiring the store, cache and rate limiter into the engine.

The cache and rate limiter are built once by the lifespan and kept on
``app.state``; the store wraps the request's database session.

Usage:
    @router.get("/{name}/enabled")
    async def check(name: str, service: FeatureFlagServiceDep) -> ...:
        return await service.is_feature_enabled(name)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flag_service.core.dependencies.database import get_db_session
from flag_service.core.settings import get_app_settings, get_flag_settings
from flag_service.features.featureflags.cache import NullResultCache, ResultCache
from flag_service.features.featureflags.evaluation import FeatureEvaluator
from flag_service.features.featureflags.ratelimit import FeatureRateLimiter, InMemoryFeatureRateLimiter
from flag_service.features.featureflags.service import FeatureFlagService
from flag_service.features.featureflags.store import DatabaseFlagStore, FlagStore


def get_result_cache(request: Request) -> ResultCache:
    cache = getattr(request.app.state, "result_cache", None)
    if cache is None:
        cache = NullResultCache()
        request.app.state.result_cache = cache
    return cache


def get_feature_rate_limiter(request: Request) -> FeatureRateLimiter:
    limiter = getattr(request.app.state, "feature_rate_limiter", None)
    if limiter is None:
        limiter = InMemoryFeatureRateLimiter(get_flag_settings().rate_limit_window_seconds)
        request.app.state.feature_rate_limiter = limiter
    return limiter


def get_flag_store(session: Annotated[AsyncSession, Depends(get_db_session)]) -> FlagStore:
    return DatabaseFlagStore(session)


def get_feature_evaluator(
    store: Annotated[FlagStore, Depends(get_flag_store)],
    cache: Annotated[ResultCache, Depends(get_result_cache)],
    rate_limiter: Annotated[FeatureRateLimiter, Depends(get_feature_rate_limiter)],
) -> FeatureEvaluator:
    flag_settings = get_flag_settings()
    return FeatureEvaluator(
        store,
        cache,
        rate_limiter,
        environment=get_app_settings().environment,
        cache_ttl=flag_settings.cache_ttl_seconds,
        cache_key_prefix=flag_settings.cache_key_prefix,
    )


def get_feature_service(
    store: Annotated[FlagStore, Depends(get_flag_store)],
    evaluator: Annotated[FeatureEvaluator, Depends(get_feature_evaluator)],
) -> FeatureFlagService:
    return FeatureFlagService(store, evaluator)


FeatureFlagServiceDep = Annotated[FeatureFlagService, Depends(get_feature_service)]
FeatureEvaluatorDep = Annotated[FeatureEvaluator, Depends(get_feature_evaluator)]
