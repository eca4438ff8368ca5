"""Pydantic schemas for the feature flags feature.

Payloads and responses use camelCase on the wire (``rateLimit``,
``fallbackFlag``, ``expiresAt``); snake_case names are accepted as well.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

FlagEnvironment = Literal["development", "production", "test"]
MetadataValue = str | int | float | bool | None

FlagName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive timestamps (sqlite, clients without an offset) are read as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _dedupe(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return list(dict.fromkeys(values))


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeatureFlagCreate(_CamelModel):
    """Payload used when creating a feature flag."""

    name: FlagName = Field(..., description="Unique flag key")
    description: Description
    enabled: bool = False
    env: FlagEnvironment = "development"
    version: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)] = "v1"
    percentage: int = Field(default=100, ge=0, le=100, description="Share of users enabled")
    users: list[str] = Field(default_factory=list, description="User ids that are always enabled")
    expires_at: datetime | None = None
    activates_at: datetime | None = None
    deactivates_at: datetime | None = None
    dependencies: list[FlagName] = Field(
        default_factory=list,
        description="Flag names that must all be enabled",
    )
    group: str | None = Field(default=None, max_length=100)
    rate_limit: int | None = Field(
        default=None,
        ge=1,
        description="Max evaluations per user per minute",
    )
    fallback_flag: FlagName | None = None
    priority: int = 0
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    @field_validator("users")
    @classmethod
    def dedupe_users(cls, v: list[str]) -> list[str]:
        return _dedupe(v) or []

    @field_validator("expires_at", "activates_at", "deactivates_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


# Columns that cannot be cleared with an explicit null
_REQUIRED_ON_UPDATE = frozenset(
    {
        "description",
        "enabled",
        "env",
        "version",
        "percentage",
        "users",
        "dependencies",
        "priority",
        "metadata",
    }
)


class FeatureFlagUpdate(_CamelModel):
    """Partial update. ``name`` is immutable and ignored if sent."""

    description: Description | None = None
    enabled: bool | None = None
    env: FlagEnvironment | None = None
    version: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)] | None = None
    percentage: int | None = Field(default=None, ge=0, le=100)
    users: list[str] | None = None
    expires_at: datetime | None = None
    activates_at: datetime | None = None
    deactivates_at: datetime | None = None
    dependencies: list[FlagName] | None = None
    group: str | None = Field(default=None, max_length=100)
    rate_limit: int | None = Field(default=None, ge=1)
    fallback_flag: FlagName | None = None
    priority: int | None = None
    metadata: dict[str, MetadataValue] | None = None

    @field_validator("users")
    @classmethod
    def dedupe_users(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe(v)

    @field_validator("expires_at", "activates_at", "deactivates_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_not_empty(self) -> FeatureFlagUpdate:
        if not self.model_fields_set:
            msg = "At least one field must be provided for update"
            raise ValueError(msg)
        cleared = sorted(f for f in self.model_fields_set & _REQUIRED_ON_UPDATE if getattr(self, f) is None)
        if cleared:
            msg = f"Fields cannot be null: {', '.join(cleared)}"
            raise ValueError(msg)
        return self

    def to_patch(self) -> dict[str, Any]:
        """Only the fields the client sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class FeatureFlagResponse(_CamelModel):
    """A stored feature flag, as returned by the store and the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    name: str
    description: str
    enabled: bool
    env: FlagEnvironment
    version: str
    percentage: int
    users: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None
    activates_at: datetime | None = None
    deactivates_at: datetime | None = None
    dependencies: list[str] = Field(default_factory=list)
    group: str | None = None
    rate_limit: int | None = None
    fallback_flag: str | None = None
    priority: int = 0
    metadata: dict[str, MetadataValue] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("context_data", "metadata"),
        serialization_alias="metadata",
    )
    created_at: datetime
    updated_at: datetime

    @field_validator("expires_at", "activates_at", "deactivates_at", "created_at", "updated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class FeatureFlagListResponse(BaseModel):
    """All flags with their count."""

    count: int
    features: list[FeatureFlagResponse]


class ToggleGroupRequest(BaseModel):
    """Payload for toggling every flag in a group."""

    enabled: StrictBool


class ToggleGroupResponse(BaseModel):
    group: str
    enabled: bool
    count: int = Field(description="Number of flags updated")


class FeatureEvaluationResponse(BaseModel):
    """Result of evaluating a flag for an optional user."""

    feature: str
    version: str
    user_id: str | None = None
    enabled: bool


__all__ = [
    "FeatureEvaluationResponse",
    "FeatureFlagCreate",
    "FeatureFlagListResponse",
    "FeatureFlagResponse",
    "FeatureFlagUpdate",
    "FlagEnvironment",
    "MetadataValue",
    "ToggleGroupRequest",
    "ToggleGroupResponse",
]
