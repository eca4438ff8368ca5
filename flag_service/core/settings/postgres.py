"""PostgreSQL database settings."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseSettings):
    """Database connection and pool settings.

    Environment variables use DB_ prefix.

    Two ways to configure:
    1. DATABASE_URL: a complete SQLAlchemy URL, used as-is
       (``sqlite+aiosqlite://`` works for local runs and tests)
    2. Components: DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME
    """

    dsn: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Optional complete SQLAlchemy database URL. Overrides the component fields.",
    )

    host: str = Field(default="localhost", min_length=1, max_length=255)
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = Field(default="postgres", min_length=1, max_length=100)
    password: SecretStr = Field(default=SecretStr("postgres"))
    name: str = Field(default="flag_service", min_length=1, max_length=100)
    driver: str = Field(
        default="psycopg",
        description="SQLAlchemy driver ('psycopg' is async-capable with psycopg 3).",
    )
    application_name: str = Field(default="flag-service", min_length=1, max_length=100)

    # ─────────────────────────────────────────────────────
    # SQLAlchemy Connection Pool Configuration
    # ─────────────────────────────────────────────────────
    pool_size: int = Field(default=10, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=100)
    pool_pre_ping: bool = Field(default=True)
    pool_timeout: float = Field(default=30.0, ge=0.1, le=300.0)
    pool_recycle: int = Field(default=1800, ge=0, le=86400)
    connect_timeout: float = Field(default=5.0, ge=0.1, le=60.0)
    echo: bool = Field(default=False, description="Echo SQL statements to logs (debug only).")

    startup_require_db: bool = Field(
        default=True,
        description="Fail application startup if the database is unreachable.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )

    @computed_field  # type: ignore[misc]
    @property
    def url(self) -> str:
        """SQLAlchemy database URL."""
        if self.dsn:
            return self.dsn
        safe_password = quote_plus(self.password.get_secret_value())
        safe_app_name = quote_plus(self.application_name)
        return (
            f"postgresql+{self.driver}://{self.user}:{safe_password}"
            f"@{self.host}:{self.port}/{self.name}?application_name={safe_app_name}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def sqlalchemy_engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for create_async_engine.

        SQLite uses a static pool, so pool sizing is only passed for
        server databases.
        """
        if self.is_sqlite:
            return {"echo": self.echo}
        return {
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_pre_ping": self.pool_pre_ping,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "connect_args": {"connect_timeout": int(self.connect_timeout)},
            "echo": self.echo,
        }
