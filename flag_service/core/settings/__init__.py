"""Modular Pydantic Settings v2 configuration.

One frozen settings class per domain, each with its own environment prefix:

    APP_    application and runtime environment
    DB_     database (or DATABASE_URL)
    REDIS_  result cache and shared rate limits (or REDIS_URL)
    AUTH_   JWT signing and password hashing
    LOG_    logging
    FLAGS_  evaluation engine tuning

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .loader import (
    clear_all_caches,
    get_app_settings,
    get_auth_settings,
    get_db_settings,
    get_flag_settings,
    get_logging_settings,
    get_redis_settings,
)
from .unified import Settings, get_settings

__all__ = [
    "Settings",
    "clear_all_caches",
    "get_app_settings",
    "get_auth_settings",
    "get_db_settings",
    "get_flag_settings",
    "get_logging_settings",
    "get_redis_settings",
    "get_settings",
]
