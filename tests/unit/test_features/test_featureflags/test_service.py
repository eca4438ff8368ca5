"""Tests for FeatureFlagService administration."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from flag_service.features.featureflags.exceptions import (
    DuplicateFeatureNameError,
    FeatureNotFoundError,
    FlagValidationError,
)
from flag_service.features.featureflags.schemas import FeatureFlagCreate, FeatureFlagUpdate
from flag_service.features.featureflags.service import FeatureFlagService
from flag_service.features.featureflags.store import FlagKey
from tests.unit.test_features.test_featureflags.conftest import NOW, make_flag


@pytest.mark.asyncio
async def test_create_feature_primes_cache(service: FeatureFlagService, cache) -> None:
    created = await service.create_feature(
        FeatureFlagCreate(name="beta", description="Beta", enabled=True, env="test")
    )

    assert created.name == "beta"
    assert cache.data["feature:beta:v1:global"] is True


@pytest.mark.asyncio
async def test_create_feature_primes_computed_result(service: FeatureFlagService, cache) -> None:
    # Enabled, but for another environment
    await service.create_feature(
        FeatureFlagCreate(name="beta", description="Beta", enabled=True, env="production")
    )

    assert cache.data["feature:beta:v1:global"] is False


@pytest.mark.asyncio
async def test_create_duplicate_name_fails(service: FeatureFlagService, store) -> None:
    store.add(make_flag("beta"))

    with pytest.raises(DuplicateFeatureNameError) as exc_info:
        await service.create_feature(FeatureFlagCreate(name="beta", description="Again"))

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_get_all_features_counts(service: FeatureFlagService, store) -> None:
    store.add(make_flag("a"))
    store.add(make_flag("b"))

    result = await service.get_all_features()

    assert result.count == 2
    assert {f.name for f in result.features} == {"a", "b"}


@pytest.mark.asyncio
async def test_get_missing_feature_raises(service: FeatureFlagService) -> None:
    with pytest.raises(FeatureNotFoundError):
        await service.get_feature_by_id(uuid4())


@pytest.mark.asyncio
async def test_update_invalidates_cached_result(service: FeatureFlagService, store, cache) -> None:
    flag = store.add(make_flag("beta"))
    assert await service.is_feature_enabled("beta") is True

    await service.update_feature(flag.id, FeatureFlagUpdate(enabled=False))

    assert "feature:beta:v1:global" in cache.deleted
    assert await service.is_feature_enabled("beta") is False


@pytest.mark.asyncio
async def test_update_version_invalidates_both_versions(service: FeatureFlagService, store, cache) -> None:
    flag = store.add(make_flag("beta"))

    updated = await service.update_feature(flag.id, {"version": "v2"})

    assert updated.version == "v2"
    assert {"feature:beta:v1:global", "feature:beta:v2:global"} <= set(cache.deleted)


@pytest.mark.asyncio
async def test_update_ignores_name(service: FeatureFlagService, store) -> None:
    flag = store.add(make_flag("beta"))

    updated = await service.update_feature(flag.id, {"name": "renamed", "priority": 5})

    assert updated.name == "beta"
    assert updated.priority == 5


@pytest.mark.asyncio
async def test_update_with_only_name_is_rejected(service: FeatureFlagService, store) -> None:
    flag = store.add(make_flag("beta"))

    with pytest.raises(FlagValidationError):
        await service.update_feature(flag.id, {"name": "renamed"})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("patch", "field"),
    [
        ({"percentage": 150}, "percentage"),
        ({"percentage": -1}, "percentage"),
        ({"rate_limit": 0}, "rate_limit"),
        ({"enabled": None}, None),
    ],
)
async def test_update_with_mapping_is_validated(service: FeatureFlagService, store, patch, field) -> None:
    flag = store.add(make_flag("beta", percentage=40))

    with pytest.raises(FlagValidationError) as exc_info:
        await service.update_feature(flag.id, patch)

    assert exc_info.value.extra.get("field") == field
    assert store.flags[flag.id].percentage == 40
    assert store.updates == 0


@pytest.mark.asyncio
async def test_update_with_mapping_drops_unknown_keys(service: FeatureFlagService, store) -> None:
    flag = store.add(make_flag("beta", enabled=False))

    updated = await service.update_feature(flag.id, {"enabled": True, "id": "other", "created_at": "never"})

    assert updated.id == flag.id
    assert updated.created_at == flag.created_at
    assert updated.enabled is True


@pytest.mark.asyncio
async def test_update_missing_feature_raises(service: FeatureFlagService) -> None:
    with pytest.raises(FeatureNotFoundError):
        await service.update_feature(uuid4(), {"enabled": True})


@pytest.mark.asyncio
async def test_delete_feature_invalidates(service: FeatureFlagService, store, cache) -> None:
    flag = store.add(make_flag("beta"))
    cache.data["feature:beta:v1:global"] = True

    await service.delete_feature(flag.id)

    assert store.flags == {}
    assert "feature:beta:v1:global" not in cache.data
    assert await service.is_feature_enabled("beta") is False


@pytest.mark.asyncio
async def test_delete_missing_feature_raises(service: FeatureFlagService) -> None:
    with pytest.raises(FeatureNotFoundError):
        await service.delete_feature(uuid4())


@pytest.mark.asyncio
async def test_toggle_group_updates_members(service: FeatureFlagService, store) -> None:
    store.add(make_flag("a", group="checkout", enabled=False))
    store.add(make_flag("b", group="checkout", enabled=False))
    store.add(make_flag("c", group="search", enabled=False))

    count = await service.toggle_group("checkout", True)

    assert count == 2
    states = {f.name: f.enabled for f in store.flags.values()}
    assert states == {"a": True, "b": True, "c": False}


@pytest.mark.asyncio
async def test_toggle_group_is_idempotent(service: FeatureFlagService, store) -> None:
    store.add(make_flag("a", group="checkout"))

    assert await service.toggle_group("checkout", True) == 1
    assert await service.toggle_group("checkout", True) == 1
    assert await service.toggle_group("nobody", True) == 0


@pytest.mark.asyncio
async def test_toggle_group_failure_keeps_earlier_updates(service: FeatureFlagService, store) -> None:
    store.add(make_flag("a", group="checkout", enabled=False))
    store.add(make_flag("b", group="checkout", enabled=False))
    store.fail_update_after = 1

    with pytest.raises(RuntimeError):
        await service.toggle_group("checkout", True)

    assert sorted(f.enabled for f in store.flags.values()) == [False, True]


@pytest.mark.asyncio
async def test_purge_expired_returns_keys_and_invalidates(service: FeatureFlagService, store, cache) -> None:
    store.add(make_flag("old", version="v3", expires_at=NOW - timedelta(days=1)))
    store.add(make_flag("current", expires_at=NOW + timedelta(days=1)))
    store.add(make_flag("forever"))

    removed = await service.purge_expired(NOW)

    assert removed == [FlagKey("old", "v3")]
    assert "feature:old:v3:global" in cache.deleted
    assert {f.name for f in store.flags.values()} == {"current", "forever"}


@pytest.mark.asyncio
async def test_is_feature_enabled_delegates(service: FeatureFlagService, store) -> None:
    store.add(make_flag("beta", percentage=0, users=["u1"]))

    assert await service.is_feature_enabled("beta", "v1", "u1") is True
    assert await service.is_feature_enabled("beta", "v1", "u2") is False
