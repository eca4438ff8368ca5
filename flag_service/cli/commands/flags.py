"""Feature flag management commands.

- List flags
- Evaluate a flag for a user
- Purge expired flags
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from flag_service.cli.utils import (
    coro,
    error,
    evaluation_result,
    flag_summary,
    header,
    info,
    success,
    warning,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from flag_service.features.featureflags.evaluation import FeatureEvaluator
    from flag_service.features.featureflags.store import DatabaseFlagStore


def _evaluator(session: AsyncSession) -> tuple[DatabaseFlagStore, FeatureEvaluator]:
    from flag_service.core.settings import get_app_settings, get_flag_settings
    from flag_service.features.featureflags.cache import NullResultCache
    from flag_service.features.featureflags.evaluation import FeatureEvaluator
    from flag_service.features.featureflags.ratelimit import InMemoryFeatureRateLimiter
    from flag_service.features.featureflags.store import DatabaseFlagStore

    flag_settings = get_flag_settings()
    store = DatabaseFlagStore(session)
    evaluator = FeatureEvaluator(
        store,
        NullResultCache(),
        InMemoryFeatureRateLimiter(flag_settings.rate_limit_window_seconds),
        environment=get_app_settings().environment,
        cache_ttl=flag_settings.cache_ttl_seconds,
        cache_key_prefix=flag_settings.cache_key_prefix,
    )
    return store, evaluator


@click.group(name="flags")
def flags() -> None:
    """Feature flag management commands."""


@flags.command(name="list")
@click.option("--group", "-g", default=None, help="Only show flags in this group")
@coro
async def list_flags(group: str | None) -> None:
    """List all feature flags."""
    from flag_service.features.featureflags.service import FeatureFlagService
    from flag_service.infra.database import get_async_session

    header("Feature Flags")

    async with get_async_session() as session:
        store, evaluator = _evaluator(session)
        response = await FeatureFlagService(store, evaluator).get_all_features()

    items = [f for f in response.features if group is None or f.group == group]
    if not items:
        info("No feature flags found")
        return

    click.echo()
    for flag in items:
        flag_summary(flag)

    success(f"Total: {len(items)} flags")


@flags.command(name="check")
@click.argument("name")
@click.option("--version", "version", default="v1", show_default=True, help="Flag version")
@click.option("--user", "user_id", default=None, help="User ID to evaluate for")
@coro
async def check_flag(name: str, version: str, user_id: str | None) -> None:
    """Evaluate NAME for a user without touching the result cache."""
    from flag_service.features.featureflags.exceptions import FlagValidationError
    from flag_service.infra.database import get_async_session

    async with get_async_session() as session:
        _, evaluator = _evaluator(session)
        try:
            enabled = await evaluator.is_feature_enabled(name, version, user_id)
        except FlagValidationError as e:
            error(e.detail)
            sys.exit(2)

    evaluation_result(name, version, user_id, enabled)


@flags.command(name="purge-expired")
@coro
async def purge_expired() -> None:
    """Delete flags whose expiry time has passed."""
    from flag_service.core.settings import get_redis_settings
    from flag_service.features.featureflags.cache import (
        NullResultCache,
        RedisResultCache,
        ResultCache,
    )
    from flag_service.features.featureflags.tasks import purge_expired_flags
    from flag_service.infra.cache.redis import start_cache, stop_cache

    cache: ResultCache = NullResultCache()
    if get_redis_settings().is_configured:
        try:
            cache = RedisResultCache(await start_cache())
        except Exception as e:
            warning(f"Redis unavailable, cached results will expire by TTL: {e}")

    try:
        removed = await purge_expired_flags(cache)
    finally:
        await stop_cache()

    success(f"Removed {removed} expired flag(s)")
