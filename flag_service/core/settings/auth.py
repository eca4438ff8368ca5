"""Authentication settings: JWT signing and password hashing."""

from __future__ import annotations

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_SECRET = "change-me-in-production"  # noqa: S105


class AuthSettings(BaseSettings):
    """JWT and password hashing configuration.

    Environment variables use AUTH_ prefix.
    Example: AUTH_JWT_SECRET=..., AUTH_ACCESS_TOKEN_EXPIRE_MINUTES=60
    """

    jwt_secret: SecretStr = Field(
        default=SecretStr(_DEV_SECRET),
        description="HMAC secret used to sign and verify access tokens",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        pattern=r"^HS(256|384|512)$",
        description="JWT signing algorithm",
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        ge=1,
        description="Access token lifetime in minutes (default 30 days)",
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for password hashes",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def _validate_production_secret(self) -> AuthSettings:
        """Refuse the development signing secret in production."""
        from .loader import get_app_settings

        if (
            get_app_settings().environment == "production"
            and self.jwt_secret.get_secret_value() == _DEV_SECRET
        ):
            msg = "AUTH_JWT_SECRET must be set in the production environment"
            raise ValueError(msg)
        return self
