"""Lifecycle registry for managing startup and shutdown ordering.

Hooks register under a name with a startup order and the names they
require. Shutdown runs the started hooks in reverse order.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class LifecycleHook:
    """Represents a startup or shutdown hook with metadata."""

    def __init__(
        self,
        name: str,
        func: Callable[..., Awaitable[None]],
        order: int,
        requires: list[str],
    ) -> None:
        self.name = name
        self.func = func
        self.startup_order = order
        self.requires = requires

    async def execute(self, **kwargs: Any) -> None:
        await self.func(**kwargs)


class LifecycleRegistry:
    """Registry for application lifecycle hooks.

    Example:
        registry = LifecycleRegistry()

        @registry.register(name="database", startup_order=10, requires=["core"])
        async def startup_database(db_settings: PostgresSettings, **kwargs: object) -> None:
            await init_database()

        @registry.register(name="database")
        async def shutdown_database(**kwargs: object) -> None:
            await close_database()

        await registry.startup(**settings)
        ...
        await registry.shutdown(**settings)

    A function whose name starts with ``shutdown`` registers as the
    shutdown half of the pair.
    """

    def __init__(self) -> None:
        self._startup_hooks: dict[str, LifecycleHook] = {}
        self._shutdown_hooks: dict[str, LifecycleHook] = {}
        self._started: list[str] = []

    def register(
        self,
        name: str,
        startup_order: int = 50,
        requires: list[str] | None = None,
    ) -> Callable[[Callable[..., Awaitable[None]]], Callable[..., Awaitable[None]]]:
        requires_list = requires or []

        def decorator(func: Callable[..., Awaitable[None]]) -> Callable[..., Awaitable[None]]:
            func_name = func.__name__.lower()
            is_shutdown = func_name.startswith("shutdown") or func_name.endswith("_shutdown")

            hook = LifecycleHook(name=name, func=func, order=startup_order, requires=requires_list)

            hooks = self._shutdown_hooks if is_shutdown else self._startup_hooks
            if name in hooks:
                kind = "Shutdown" if is_shutdown else "Startup"
                msg = f"{kind} hook '{name}' already registered"
                raise ValueError(msg)
            hooks[name] = hook
            return func

        return decorator

    def _resolve_startup_order(self) -> list[str]:
        """Order hooks so each runs after everything it requires.

        Raises:
            ValueError: On a missing or circular requirement.
        """
        ordered: list[str] = []

        def visit(name: str, path: tuple[str, ...]) -> None:
            if name in path:
                msg = f"Circular dependency detected: {' -> '.join((*path, name))}"
                raise ValueError(msg)
            if name in ordered:
                return
            for dep in self._startup_hooks[name].requires:
                if dep not in self._startup_hooks:
                    msg = f"Hook '{name}' requires '{dep}' but it's not registered"
                    raise ValueError(msg)
                visit(dep, (*path, name))
            ordered.append(name)

        for name in sorted(self._startup_hooks, key=lambda n: self._startup_hooks[n].startup_order):
            visit(name, ())
        return ordered

    def _resolve_shutdown_order(self) -> list[str]:
        """Started hooks with a shutdown half, last started first."""
        return [name for name in reversed(self._started) if name in self._shutdown_hooks]

    async def startup(self, **kwargs: Any) -> None:
        """Execute all startup hooks in dependency order."""
        for name in self._resolve_startup_order():
            hook = self._startup_hooks[name]
            try:
                logger.debug("Starting %s...", name)
                await hook.execute(**kwargs)
                logger.debug("Started %s", name)
                self._started.append(name)
            except Exception as e:
                logger.error("Failed to start %s: %s", name, e, exc_info=True)
                raise

    async def shutdown(self, **kwargs: Any) -> None:
        """Execute shutdown hooks for started services, last started first."""
        for name in self._resolve_shutdown_order():
            hook = self._shutdown_hooks[name]
            try:
                logger.debug("Shutting down %s...", name)
                await hook.execute(**kwargs)
            except Exception as e:
                # Continue shutdown even if one hook fails
                logger.warning("Error shutting down %s: %s", name, e, exc_info=True)
        self._started.clear()

    def clear(self) -> None:
        """Clear all registered hooks (mainly for testing)."""
        self._startup_hooks.clear()
        self._shutdown_hooks.clear()
        self._started.clear()


# Global registry instance
lifespan_registry = LifecycleRegistry()

__all__ = ["LifecycleHook", "LifecycleRegistry", "lifespan_registry"]
