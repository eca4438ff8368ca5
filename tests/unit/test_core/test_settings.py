"""Unit tests for the settings domains and loaders."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from flag_service.core.settings import (
    clear_all_caches,
    get_app_settings,
    get_auth_settings,
    get_flag_settings,
    get_settings,
)
from flag_service.core.settings.app import AppSettings
from flag_service.core.settings.auth import AuthSettings
from flag_service.core.settings.flags import FeatureFlagSettings
from flag_service.core.settings.postgres import PostgresSettings
from flag_service.core.settings.redis import RedisSettings


@pytest.fixture
def fresh_settings() -> Iterator[None]:
    clear_all_caches()
    yield
    clear_all_caches()


class TestAppSettings:
    def test_environment_from_env(self) -> None:
        assert AppSettings().environment == "test"

    def test_frozen(self) -> None:
        settings = AppSettings()

        with pytest.raises(ValidationError):
            settings.debug = True

    def test_debug_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError, match="Debug mode"):
            AppSettings(environment="production", debug=True)

    def test_unknown_environment_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AppSettings(environment="staging")

    def test_disable_docs(self) -> None:
        settings = AppSettings(disable_docs=True)

        assert settings.get_docs_url() is None
        assert settings.get_openapi_url() is None


class TestAuthSettings:
    def test_dev_secret_rejected_in_production(
        self, monkeypatch: pytest.MonkeyPatch, fresh_settings: None
    ) -> None:
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        monkeypatch.delenv("AUTH_JWT_SECRET", raising=False)

        with pytest.raises(ValidationError, match="AUTH_JWT_SECRET"):
            AuthSettings()

    def test_custom_secret_allowed_in_production(
        self, monkeypatch: pytest.MonkeyPatch, fresh_settings: None
    ) -> None:
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        monkeypatch.setenv("AUTH_JWT_SECRET", "a-real-production-secret-value-0123456789")

        assert AuthSettings().jwt_secret.get_secret_value().startswith("a-real")

    def test_algorithm_restricted_to_hmac(self) -> None:
        with pytest.raises(ValidationError):
            AuthSettings(jwt_algorithm="RS256")


class TestFeatureFlagSettings:
    def test_defaults(self) -> None:
        settings = FeatureFlagSettings(expiry_sweep_interval_seconds=60)

        assert settings.cache_ttl_seconds == 300
        assert settings.cache_key_prefix == "feature"
        assert settings.rate_limit_window_seconds == 60
        assert settings.rate_limit_backend == "memory"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLAGS_RATE_LIMIT_BACKEND", "redis")
        monkeypatch.setenv("FLAGS_CACHE_TTL_SECONDS", "30")

        settings = FeatureFlagSettings()

        assert settings.rate_limit_backend == "redis"
        assert settings.cache_ttl_seconds == 30

    def test_rejects_bad_prefix(self) -> None:
        with pytest.raises(ValidationError):
            FeatureFlagSettings(cache_key_prefix="has space")


class TestInfrastructureSettings:
    def test_database_url_overrides_components(self) -> None:
        settings = PostgresSettings(DATABASE_URL="sqlite+aiosqlite:///flags.db")

        assert settings.url == "sqlite+aiosqlite:///flags.db"
        assert settings.is_sqlite
        assert "pool_size" not in settings.sqlalchemy_engine_kwargs()

    def test_postgres_url_from_components(self) -> None:
        settings = PostgresSettings(
            DATABASE_URL=None,
            host="db",
            user="flags",
            password="p@ss",
            name="flags",
        )

        assert settings.url.startswith("postgresql+psycopg://flags:p%40ss@db:5432/flags")
        assert settings.sqlalchemy_engine_kwargs()["pool_size"] == 10

    def test_redis_unconfigured_without_url(self) -> None:
        assert RedisSettings().is_configured is False
        assert RedisSettings(REDIS_URL="redis://localhost:6379/0").is_configured is True

    def test_redis_key_prefix(self) -> None:
        assert RedisSettings(key_prefix="flags:").get_prefixed_key("ratelimit") == "flags:ratelimit"


class TestLoaders:
    def test_loaders_are_cached(self, fresh_settings: None) -> None:
        assert get_app_settings() is get_app_settings()
        assert get_flag_settings() is get_flag_settings()

    def test_clear_all_caches_reloads(self, monkeypatch: pytest.MonkeyPatch, fresh_settings: None) -> None:
        before = get_auth_settings()
        monkeypatch.setenv("AUTH_ACCESS_TOKEN_EXPIRE_MINUTES", "5")

        clear_all_caches()

        after = get_auth_settings()
        assert after is not before
        assert after.access_token_expire_minutes == 5

    def test_unified_settings(self, fresh_settings: None) -> None:
        settings = get_settings()

        assert settings.app is get_app_settings()
        assert settings.flags.cache_key_prefix == "feature"
