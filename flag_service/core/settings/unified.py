"""Unified settings composition for convenient access.

Usage:
    from flag_service.core.settings import get_settings

    settings = get_settings()
    print(settings.app.environment)
    print(settings.flags.cache_ttl_seconds)

Each nested settings class still reads its own prefix (APP_, DB_, REDIS_, ...).
Code that needs a single domain should prefer the get_*_settings() loaders.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .flags import FeatureFlagSettings
from .loader import (
    get_app_settings,
    get_auth_settings,
    get_db_settings,
    get_flag_settings,
    get_logging_settings,
    get_redis_settings,
)
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .redis import RedisSettings


class Settings(BaseModel):
    """Unified view over every settings domain."""

    model_config = ConfigDict(frozen=True)

    app: AppSettings
    db: PostgresSettings
    redis: RedisSettings
    auth: AuthSettings
    logging: LoggingSettings
    flags: FeatureFlagSettings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the unified settings instance (cached)."""
    return Settings(
        app=get_app_settings(),
        db=get_db_settings(),
        redis=get_redis_settings(),
        auth=get_auth_settings(),
        logging=get_logging_settings(),
        flags=get_flag_settings(),
    )
