"""Feature flag evaluation settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RateLimitBackend = Literal["memory", "redis"]


class FeatureFlagSettings(BaseSettings):
    """Tuning for the evaluation engine.

    Environment variables use FLAGS_ prefix.
    Example: FLAGS_RATE_LIMIT_BACKEND=redis
    """

    cache_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="TTL of cached evaluation results",
    )
    cache_key_prefix: str = Field(
        default="feature",
        min_length=1,
        pattern=r"^[a-zA-Z0-9_-]+$",
        description="First segment of evaluation cache keys",
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Length of the per-user evaluation rate limit window",
    )
    rate_limit_backend: RateLimitBackend = Field(
        default="memory",
        description="'memory' keeps counters per process; 'redis' shares them across instances",
    )
    expiry_sweep_interval_seconds: int = Field(
        default=60,
        ge=0,
        description="How often expired flags are purged (0 disables the sweeper)",
    )

    model_config = SettingsConfigDict(
        env_prefix="FLAGS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
