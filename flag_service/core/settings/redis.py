"""Redis cache configuration settings."""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis settings for the evaluation result cache and shared rate limits.

    Environment variables use REDIS_ prefix.
    Example: REDIS_URL="redis://localhost:6379/0"

    Leaving REDIS_URL unset disables Redis; evaluation then runs uncached.
    """

    redis_url: str | None = Field(
        default=None,
        alias="REDIS_URL",
        description="Redis connection URL (redis://[username:password@]host:port/db).",
    )

    # ──────────────────────────────────────────────────────────────
    # Connection pool settings
    # ──────────────────────────────────────────────────────────────

    max_connections: int = Field(default=50, ge=1, le=1000)
    socket_timeout: float = Field(
        default=5.0,
        ge=0.1,
        le=30.0,
        description="Redis socket timeout in seconds (for operations)",
    )
    socket_connect_timeout: float = Field(
        default=5.0,
        ge=0.1,
        le=30.0,
        description="Redis socket connection timeout in seconds (initial connection)",
    )
    health_check_interval: int = Field(
        default=30,
        ge=0,
        le=300,
        description="Connection health check interval in seconds (0 to disable)",
    )

    # ──────────────────────────────────────────────────────────────
    # Retry and startup settings
    # ──────────────────────────────────────────────────────────────

    max_retries: int = Field(default=2, ge=1, le=10, description="Attempts per cache operation")
    retry_delay: float = Field(
        default=0.1,
        ge=0.01,
        le=5.0,
        description="Initial retry delay in seconds (with exponential backoff)",
    )
    startup_require_cache: bool = Field(
        default=False,
        description="Fail application startup if Redis is unavailable (False = degraded mode)",
    )

    key_prefix: str = Field(
        default="",
        max_length=100,
        pattern=r"^([a-zA-Z0-9_-]+:)?$",
        description="Optional prefix for every key written by this service (e.g., 'flags:')",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def is_configured(self) -> bool:
        return self.redis_url is not None

    def connection_pool_kwargs(self) -> dict[str, Any]:
        """Return kwargs for redis.asyncio.ConnectionPool.from_url()."""
        kwargs: dict[str, Any] = {
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "decode_responses": True,
            "encoding": "utf-8",
        }
        if self.health_check_interval > 0:
            kwargs["health_check_interval"] = self.health_check_interval
        return kwargs

    def get_prefixed_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"
