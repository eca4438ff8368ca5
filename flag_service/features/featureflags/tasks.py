"""Background removal of expired flags.

``ExpirySweeper`` runs for the lifetime of the app and calls
``purge_expired_flags`` every ``FLAGS_EXPIRY_SWEEP_INTERVAL_SECONDS``.
The CLI's ``flags purge-expired`` runs one pass on demand.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from flag_service.core.settings import get_app_settings, get_flag_settings
from flag_service.features.featureflags.evaluation import FeatureEvaluator
from flag_service.features.featureflags.ratelimit import InMemoryFeatureRateLimiter
from flag_service.features.featureflags.service import FeatureFlagService
from flag_service.features.featureflags.store import DatabaseFlagStore
from flag_service.infra.database import get_async_session
from flag_service.infra.metrics.prometheus import feature_flags_expired_total

if TYPE_CHECKING:
    from flag_service.features.featureflags.cache import ResultCache

logger = logging.getLogger(__name__)


async def purge_expired_flags(cache: ResultCache, now: datetime | None = None) -> int:
    """Delete flags past ``expires_at`` and invalidate their cached results.

    Nothing is evaluated here, so the evaluator gets a throwaway rate limiter
    and only its cache invalidation is used.

    Returns:
        Number of flags removed.
    """
    flag_settings = get_flag_settings()
    async with get_async_session() as session:
        store = DatabaseFlagStore(session)
        evaluator = FeatureEvaluator(
            store,
            cache,
            InMemoryFeatureRateLimiter(flag_settings.rate_limit_window_seconds),
            environment=get_app_settings().environment,
            cache_ttl=flag_settings.cache_ttl_seconds,
            cache_key_prefix=flag_settings.cache_key_prefix,
        )
        removed = await FeatureFlagService(store, evaluator).purge_expired(now or datetime.now(UTC))

    if removed:
        feature_flags_expired_total.inc(len(removed))
    return len(removed)


class ExpirySweeper:
    """Periodic expired-flag cleanup as an asyncio task.

    A failed pass is logged and retried on the next interval.
    """

    def __init__(self, cache: ResultCache, interval_seconds: float) -> None:
        self._cache = cache
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="feature-expiry-sweeper")
        logger.info("Expiry sweeper started", extra={"interval_seconds": self._interval})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def run_once(self) -> int:
        try:
            return await purge_expired_flags(self._cache)
        except Exception:
            logger.exception("Expired flag sweep failed")
            return 0

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)
