"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from flag_service.core.settings import get_app_settings

    settings = get_app_settings()

Testing:
    Clear the caches to force a reload after changing the environment:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .auth import AuthSettings
from .flags import FeatureFlagSettings
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .redis import RedisSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings."""
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_redis_settings() -> RedisSettings:
    """Get cached Redis settings."""
    return RedisSettings()


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get cached authentication settings."""
    return AuthSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_flag_settings() -> FeatureFlagSettings:
    """Get cached feature flag evaluation settings."""
    return FeatureFlagSettings()


def clear_all_caches() -> None:
    """Clear all settings caches.

    Useful for testing. In production, prefer process restarts.
    """
    from .unified import get_settings

    get_app_settings.cache_clear()
    get_db_settings.cache_clear()
    get_redis_settings.cache_clear()
    get_auth_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_flag_settings.cache_clear()
    get_settings.cache_clear()
