"""In-memory collaborators for evaluator and service tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from flag_service.features.featureflags.evaluation import FeatureEvaluator
from flag_service.features.featureflags.exceptions import (
    CacheUnavailableError,
    DuplicateFeatureNameError,
    FeatureNotFoundError,
)
from flag_service.features.featureflags.ratelimit import InMemoryFeatureRateLimiter
from flag_service.features.featureflags.schemas import FeatureFlagCreate, FeatureFlagResponse
from flag_service.features.featureflags.service import FeatureFlagService
from flag_service.features.featureflags.store import FlagKey

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def make_flag(name: str, **overrides: Any) -> FeatureFlagResponse:
    values: dict[str, Any] = {
        "id": uuid4(),
        "name": name,
        "description": f"{name} flag",
        "enabled": True,
        "env": "test",
        "version": "v1",
        "percentage": 100,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return FeatureFlagResponse(**values)


class FakeFlagStore:
    """Dict-backed FlagStore that counts lookups."""

    def __init__(self, *flags: FeatureFlagResponse) -> None:
        self.flags: dict[UUID, FeatureFlagResponse] = {f.id: f for f in flags}
        self.lookups: list[str] = []
        self.fail_update_after: int | None = None
        self.updates = 0

    def add(self, flag: FeatureFlagResponse) -> FeatureFlagResponse:
        self.flags[flag.id] = flag
        return flag

    async def create(self, data: FeatureFlagCreate) -> FeatureFlagResponse:
        if await self.find_by_name(data.name) is not None:
            raise DuplicateFeatureNameError(data.name)
        return self.add(make_flag(**data.model_dump()))

    async def find_by_name(self, name: str) -> FeatureFlagResponse | None:
        self.lookups.append(name)
        return next((f for f in self.flags.values() if f.name == name), None)

    async def find_by_id(self, feature_id: UUID) -> FeatureFlagResponse | None:
        return self.flags.get(feature_id)

    async def find_by_group(self, group: str) -> list[FeatureFlagResponse]:
        return [f for f in self.flags.values() if f.group == group]

    async def update(self, feature_id: UUID, patch: dict[str, Any]) -> FeatureFlagResponse:
        if feature_id not in self.flags:
            raise FeatureNotFoundError(feature_id)
        if self.fail_update_after is not None and self.updates >= self.fail_update_after:
            raise RuntimeError("store went away")
        self.updates += 1
        patch = {k: v for k, v in patch.items() if k != "name"}
        updated = self.flags[feature_id].model_copy(update=patch)
        self.flags[feature_id] = updated
        return updated

    async def delete(self, feature_id: UUID) -> None:
        if self.flags.pop(feature_id, None) is None:
            raise FeatureNotFoundError(feature_id)

    async def list_all(self) -> list[FeatureFlagResponse]:
        return list(self.flags.values())

    async def purge_expired(self, now: datetime) -> list[FlagKey]:
        expired = [f for f in self.flags.values() if f.expires_at is not None and f.expires_at < now]
        for flag in expired:
            del self.flags[flag.id]
        return [FlagKey(f.name, f.version) for f in expired]


class FakeResultCache:
    """Dict-backed ResultCache; ``broken`` makes every call fail."""

    def __init__(self) -> None:
        self.data: dict[str, bool] = {}
        self.ttls: dict[str, int] = {}
        self.deleted: list[str] = []
        self.broken = False

    def _check(self, operation: str, key: str) -> None:
        if self.broken:
            raise CacheUnavailableError(operation, key, ConnectionError("down"))

    async def get(self, key: str) -> bool | None:
        self._check("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: bool, ttl_seconds: int) -> None:
        self._check("set", key)
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self._check("delete", key)
        self.deleted.append(key)
        self.data.pop(key, None)


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> FakeFlagStore:
    return FakeFlagStore()


@pytest.fixture
def cache() -> FakeResultCache:
    return FakeResultCache()


@pytest.fixture
def limiter_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def rate_limiter(limiter_clock: ManualClock) -> InMemoryFeatureRateLimiter:
    return InMemoryFeatureRateLimiter(window_seconds=60, clock=limiter_clock)


@pytest.fixture
def evaluator(
    store: FakeFlagStore,
    cache: FakeResultCache,
    rate_limiter: InMemoryFeatureRateLimiter,
) -> FeatureEvaluator:
    return FeatureEvaluator(store, cache, rate_limiter, environment="test", clock=lambda: NOW)


@pytest.fixture
def service(store: FakeFlagStore, evaluator: FeatureEvaluator) -> FeatureFlagService:
    return FeatureFlagService(store, evaluator)
