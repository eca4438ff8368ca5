"""Tests for lifecycle hook ordering."""

from __future__ import annotations

import pytest

from flag_service.app.lifespan.registry import LifecycleRegistry


@pytest.fixture
def registry() -> LifecycleRegistry:
    return LifecycleRegistry()


@pytest.mark.asyncio
async def test_startup_respects_requirements_and_shutdown_reverses(registry: LifecycleRegistry) -> None:
    calls: list[str] = []

    @registry.register(name="tasks", startup_order=5, requires=["database"])
    async def startup_tasks(**kwargs: object) -> None:
        calls.append("start tasks")

    @registry.register(name="database", startup_order=10, requires=["core"])
    async def startup_database(**kwargs: object) -> None:
        calls.append("start database")

    @registry.register(name="core", startup_order=1)
    async def startup_core(**kwargs: object) -> None:
        calls.append("start core")

    @registry.register(name="database")
    async def shutdown_database(**kwargs: object) -> None:
        calls.append("stop database")

    @registry.register(name="core")
    async def shutdown_core(**kwargs: object) -> None:
        calls.append("stop core")

    await registry.startup()
    await registry.shutdown()

    assert calls == [
        "start core",
        "start database",
        "start tasks",
        "stop database",
        "stop core",
    ]


@pytest.mark.asyncio
async def test_hooks_receive_keyword_arguments(registry: LifecycleRegistry) -> None:
    seen: dict[str, object] = {}

    @registry.register(name="core")
    async def startup_core(app_settings: object, **kwargs: object) -> None:
        seen["app_settings"] = app_settings

    await registry.startup(app_settings="settings", db_settings="ignored")

    assert seen == {"app_settings": "settings"}


@pytest.mark.asyncio
async def test_failed_startup_propagates_and_skips_its_shutdown(registry: LifecycleRegistry) -> None:
    stopped: list[str] = []

    @registry.register(name="core", startup_order=1)
    async def startup_core(**kwargs: object) -> None:
        pass

    @registry.register(name="database", startup_order=10)
    async def startup_database(**kwargs: object) -> None:
        raise ConnectionError("no database")

    @registry.register(name="core")
    async def shutdown_core(**kwargs: object) -> None:
        stopped.append("core")

    @registry.register(name="database")
    async def shutdown_database(**kwargs: object) -> None:
        stopped.append("database")

    with pytest.raises(ConnectionError):
        await registry.startup()
    await registry.shutdown()

    assert stopped == ["core"]


@pytest.mark.asyncio
async def test_shutdown_continues_after_failure(registry: LifecycleRegistry) -> None:
    stopped: list[str] = []

    @registry.register(name="core", startup_order=1)
    async def startup_core(**kwargs: object) -> None:
        pass

    @registry.register(name="cache", startup_order=2)
    async def startup_cache(**kwargs: object) -> None:
        pass

    @registry.register(name="cache")
    async def shutdown_cache(**kwargs: object) -> None:
        raise RuntimeError("boom")

    @registry.register(name="core")
    async def shutdown_core(**kwargs: object) -> None:
        stopped.append("core")

    await registry.startup()
    await registry.shutdown()

    assert stopped == ["core"]


def test_duplicate_registration_rejected(registry: LifecycleRegistry) -> None:
    @registry.register(name="core")
    async def startup_core(**kwargs: object) -> None:
        pass

    with pytest.raises(ValueError, match="already registered"):

        @registry.register(name="core")
        async def startup_core_again(**kwargs: object) -> None:
            pass


@pytest.mark.asyncio
async def test_missing_requirement(registry: LifecycleRegistry) -> None:
    @registry.register(name="tasks", requires=["database"])
    async def startup_tasks(**kwargs: object) -> None:
        pass

    with pytest.raises(ValueError, match="requires 'database'"):
        await registry.startup()


@pytest.mark.asyncio
async def test_circular_requirement(registry: LifecycleRegistry) -> None:
    @registry.register(name="a", requires=["b"])
    async def startup_a(**kwargs: object) -> None:
        pass

    @registry.register(name="b", requires=["a"])
    async def startup_b(**kwargs: object) -> None:
        pass

    with pytest.raises(ValueError, match="Circular dependency"):
        await registry.startup()
