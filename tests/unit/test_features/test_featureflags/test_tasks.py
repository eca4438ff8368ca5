"""Tests for expired flag purging and the background sweeper."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import pytest

from flag_service.features.featureflags import tasks
from flag_service.features.featureflags.schemas import FeatureFlagCreate
from flag_service.features.featureflags.store import DatabaseFlagStore
from flag_service.features.featureflags.tasks import ExpirySweeper, purge_expired_flags
from tests.unit.test_features.test_featureflags.conftest import FakeResultCache


@pytest.fixture
def use_test_session(db_session, monkeypatch: pytest.MonkeyPatch):
    @asynccontextmanager
    async def _session():
        yield db_session

    monkeypatch.setattr(tasks, "get_async_session", _session)
    return db_session


@pytest.mark.asyncio
async def test_purge_expired_flags_removes_and_invalidates(use_test_session) -> None:
    now = datetime.now(UTC)
    store = DatabaseFlagStore(use_test_session)
    await store.create(
        FeatureFlagCreate(name="old", description="old flag", env="test", expires_at=now - timedelta(minutes=5))
    )
    await store.create(FeatureFlagCreate(name="keep", description="kept flag", env="test"))
    cache = FakeResultCache()
    cache.data["feature:old:v1:global"] = True

    removed = await purge_expired_flags(cache, now=now)

    assert removed == 1
    assert await store.find_by_name("old") is None
    assert await store.find_by_name("keep") is not None
    assert "feature:old:v1:global" in cache.deleted


@pytest.mark.asyncio
async def test_run_once_purges_with_the_sweeper_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    async def _purge(cache):
        seen.append(cache)
        return 3

    monkeypatch.setattr(tasks, "purge_expired_flags", _purge)
    cache = FakeResultCache()
    sweeper = ExpirySweeper(cache, interval_seconds=60)

    assert await sweeper.run_once() == 3
    assert seen == [cache]


@pytest.mark.asyncio
async def test_run_once_survives_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _purge(cache):
        raise RuntimeError("database went away")

    monkeypatch.setattr(tasks, "purge_expired_flags", _purge)
    sweeper = ExpirySweeper(FakeResultCache(), interval_seconds=60)

    assert await sweeper.run_once() == 0


@pytest.mark.asyncio
async def test_start_runs_passes_until_stopped(monkeypatch: pytest.MonkeyPatch) -> None:
    passes = 0
    ran = asyncio.Event()

    async def _purge(cache):
        nonlocal passes
        passes += 1
        ran.set()
        return 0

    monkeypatch.setattr(tasks, "purge_expired_flags", _purge)
    sweeper = ExpirySweeper(FakeResultCache(), interval_seconds=0.01)

    sweeper.start()
    sweeper.start()
    await asyncio.wait_for(ran.wait(), timeout=1)
    assert sweeper.running

    await sweeper.stop()

    assert not sweeper.running
    assert passes >= 1
    await sweeper.stop()
