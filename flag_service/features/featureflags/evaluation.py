"""Evaluation engine: decides whether a flag is on for a version and user.

Rules are applied in order, each able to short-circuit:

1. cached result for ``feature:<name>:<version>:<user|global>``
2. flag lookup (missing, or for another environment, means disabled)
3. time window (``activates_at``, ``deactivates_at``, ``expires_at``)
4. dependencies, all of which must evaluate enabled
5. user decision: allow-list, then percentage bucket, then ``enabled``
6. per-user rate limit, applied only to a positive result
7. fallback flag when the result is negative
8. cache write, skipped for names with no flag record

A disabled flag with a ``fallback_flag`` takes the fallback's result.
Dependencies and fallbacks are evaluated recursively with the same version
and user. Names already on the current evaluation path are treated as a
cycle: that branch is off and nothing along the path is cached.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from flag_service.features.featureflags.cache import build_cache_key
from flag_service.features.featureflags.exceptions import CacheUnavailableError, FlagValidationError
from flag_service.infra.logging import get_lazy_logger
from flag_service.infra.metrics.prometheus import (
    cache_errors_total,
    feature_evaluations_total,
    feature_rate_limited_total,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from flag_service.features.featureflags.cache import ResultCache
    from flag_service.features.featureflags.ratelimit import FeatureRateLimiter
    from flag_service.features.featureflags.schemas import FeatureFlagResponse
    from flag_service.features.featureflags.store import FlagStore

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

DEFAULT_VERSION = "v1"
DEFAULT_CACHE_TTL_SECONDS = 300


def bucket_for(user_id: str) -> int:
    """Stable rollout bucket in [0, 100) for a user id.

    First 8 hex digits of the MD5 digest, modulo 100.
    """
    digest = hashlib.md5(user_id.encode("utf-8")).hexdigest()  # noqa: S324
    return int(digest[:8], 16) % 100


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class _Outcome:
    enabled: bool
    # False once the result depends on a rate limit window or a cycle
    cacheable: bool = True
    # False when the evaluated name has no flag record
    found: bool = True


_OFF = _Outcome(False)
_NOT_FOUND = _Outcome(False, found=False)

# Metric label for names with no flag record; keeps label cardinality bounded
UNKNOWN_FEATURE_LABEL = "unknown"


class FeatureEvaluator:
    """Evaluates flags against the store, the result cache and the rate limiter.

    Collaborators are passed in; the evaluator reads no globals.

    Args:
        store: Flag records.
        cache: Evaluation results. Failures are logged and bypassed.
        rate_limiter: Per-(flag, user) windows.
        environment: Runtime environment flags must match.
        cache_ttl: Seconds a result stays cached.
        cache_key_prefix: First segment of cache keys.
        clock: Returns the current timezone-aware time.
    """

    def __init__(
        self,
        store: FlagStore,
        cache: ResultCache,
        rate_limiter: FeatureRateLimiter,
        *,
        environment: str,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
        cache_key_prefix: str = "feature",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._environment = environment
        self._cache_ttl = cache_ttl
        self._cache_key_prefix = cache_key_prefix
        self._clock = clock

    @property
    def environment(self) -> str:
        return self._environment

    def cache_key(self, name: str, version: str, user_id: str | None = None) -> str:
        return build_cache_key(name, version, user_id, prefix=self._cache_key_prefix)

    async def is_feature_enabled(
        self,
        name: str,
        version: str = DEFAULT_VERSION,
        user_id: str | None = None,
    ) -> bool:
        """Evaluate ``name`` for ``version`` and an optional user.

        Unknown flags, flags for another environment and failed
        dependencies evaluate to False (or the fallback flag's result).

        Raises:
            FlagValidationError: If ``name`` or ``version`` is blank.
            FlagBackendUnavailableError: If the flag store is unreachable.
        """
        name, version = self._validate(name, version)
        outcome = await self._evaluate(name, version, user_id or None, frozenset())
        label = name if outcome.found else UNKNOWN_FEATURE_LABEL
        feature_evaluations_total.labels(feature=label, enabled=str(outcome.enabled).lower()).inc()
        return outcome.enabled

    async def prime(self, name: str, version: str = DEFAULT_VERSION) -> bool:
        """Recompute the global result for a flag and write it to the cache."""
        name, version = self._validate(name, version)
        outcome = await self._decide(name, version, None, frozenset({name}))
        if outcome.cacheable and outcome.found:
            await self._cache_set(self.cache_key(name, version), outcome.enabled)
        return outcome.enabled

    async def invalidate(self, name: str, version: str) -> None:
        """Drop the cached global result for a flag. Per-user entries expire on their own."""
        key = self.cache_key(name, version)
        try:
            await self._cache.delete(key)
        except CacheUnavailableError as e:
            self._cache_failed("delete", e)
            return
        lazy_logger.debug(lambda: f"cache.invalidate({key})")

    # ──────────────────────────────────────────────────────────────
    # Rule chain
    # ──────────────────────────────────────────────────────────────

    async def _evaluate(
        self,
        name: str,
        version: str,
        user_id: str | None,
        path: frozenset[str],
    ) -> _Outcome:
        if name in path:
            logger.warning(
                "Feature reference cycle detected",
                extra={"feature": name, "path": sorted(path), "version": version},
            )
            return _Outcome(False, cacheable=False)

        key = self.cache_key(name, version, user_id)
        cached = await self._cache_get(key)
        if cached is not None:
            lazy_logger.debug(lambda: f"evaluate({name!r}, {version!r}, {user_id!r}) -> cached {cached}")
            return _Outcome(cached)

        outcome = await self._decide(name, version, user_id, path | {name})
        # Unknown names are not cached, so every cache hit belongs to a real flag
        if outcome.cacheable and outcome.found:
            await self._cache_set(key, outcome.enabled)
        return outcome

    async def _decide(
        self,
        name: str,
        version: str,
        user_id: str | None,
        path: frozenset[str],
    ) -> _Outcome:
        flag = await self._store.find_by_name(name)
        if flag is None:
            self._log_decision(name, version, user_id, None, False, "not_found")
            return _NOT_FOUND
        if flag.env != self._environment:
            return await self._disabled(flag, version, user_id, path, "environment_mismatch")
        if not self._in_time_window(flag):
            return await self._disabled(flag, version, user_id, path, "outside_time_window")

        cacheable = True
        for dependency in flag.dependencies:
            dep = await self._evaluate(dependency, version, user_id, path)
            cacheable = cacheable and dep.cacheable
            if not dep.enabled:
                outcome = await self._disabled(flag, version, user_id, path, "dependency_disabled")
                return _Outcome(outcome.enabled, cacheable and outcome.cacheable)

        enabled, reason = self._user_decision(flag, user_id)

        if flag.rate_limit is not None and user_id is not None:
            # A cached result would hide the window
            cacheable = False
            if enabled and not await self._rate_limiter.consume(flag.name, user_id, flag.rate_limit):
                enabled, reason = False, "rate_limited"
                feature_rate_limited_total.labels(feature=flag.name).inc()

        if not enabled and flag.fallback_flag:
            fallback = await self._evaluate(flag.fallback_flag, version, user_id, path)
            self._log_decision(name, version, user_id, flag.group, fallback.enabled, f"{reason}:fallback")
            return _Outcome(fallback.enabled, cacheable and fallback.cacheable)

        self._log_decision(name, version, user_id, flag.group, enabled, reason)
        return _Outcome(enabled, cacheable)

    async def _disabled(
        self,
        flag: FeatureFlagResponse,
        version: str,
        user_id: str | None,
        path: frozenset[str],
        reason: str,
    ) -> _Outcome:
        """Off, unless the flag names a fallback."""
        if not flag.fallback_flag:
            self._log_decision(flag.name, version, user_id, flag.group, False, reason)
            return _OFF
        fallback = await self._evaluate(flag.fallback_flag, version, user_id, path)
        self._log_decision(flag.name, version, user_id, flag.group, fallback.enabled, f"{reason}:fallback")
        return _Outcome(fallback.enabled, fallback.cacheable)

    def _in_time_window(self, flag: FeatureFlagResponse) -> bool:
        now = self._clock()
        if flag.activates_at is not None and now < flag.activates_at:
            return False
        if flag.deactivates_at is not None and now > flag.deactivates_at:
            return False
        return not (flag.expires_at is not None and now > flag.expires_at)

    @staticmethod
    def _user_decision(flag: FeatureFlagResponse, user_id: str | None) -> tuple[bool, str]:
        if user_id is None:
            return flag.enabled, "global"
        if user_id in flag.users:
            return True, "allow_list"
        if flag.percentage < 100:
            return bucket_for(user_id) < flag.percentage, "percentage"
        return flag.enabled, "global"

    # ──────────────────────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate(name: str, version: str) -> tuple[str, str]:
        name = (name or "").strip()
        version = (version or "").strip()
        if not name:
            msg = "Feature name must not be blank"
            raise FlagValidationError(msg, field="name")
        if not version:
            msg = "Feature version must not be blank"
            raise FlagValidationError(msg, field="version", feature=name)
        return name, version

    async def _cache_get(self, key: str) -> bool | None:
        try:
            return await self._cache.get(key)
        except CacheUnavailableError as e:
            self._cache_failed("get", e)
            return None

    async def _cache_set(self, key: str, value: bool) -> None:
        try:
            await self._cache.set(key, value, self._cache_ttl)
        except CacheUnavailableError as e:
            self._cache_failed("set", e)

    @staticmethod
    def _cache_failed(operation: str, error: CacheUnavailableError) -> None:
        cache_errors_total.labels(operation=operation, cache_name="evaluation").inc()
        logger.warning(
            "Result cache unavailable, bypassing",
            extra={"operation": operation, "key": error.key, "error": str(error.cause)},
        )

    @staticmethod
    def _log_decision(
        name: str,
        version: str,
        user_id: str | None,
        group: str | None,
        enabled: bool,
        reason: str,
    ) -> None:
        logger.info(
            "Feature check",
            extra={
                "feature": name,
                "enabled": enabled,
                "user_id": user_id,
                "version": version,
                "group": group,
                "reason": reason,
            },
        )


__all__ = ["DEFAULT_VERSION", "FeatureEvaluator", "bucket_for"]
