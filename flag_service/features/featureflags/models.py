"""SQLAlchemy model for feature flags."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flag_service.core.database import Base, JSONType, TimestampMixin, UUIDv7PKMixin

FLAG_ENVIRONMENTS = ("development", "production", "test")


class FeatureFlag(Base, UUIDv7PKMixin, TimestampMixin):
    """A named feature toggle with its rollout rules.

    ``users``, ``dependencies`` and ``metadata`` are JSON columns (JSONB on
    PostgreSQL). The ``metadata`` column is mapped as ``context_data``
    because ``metadata`` is reserved on declarative classes.
    """

    __tablename__ = "feature_flags"

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique flag key, immutable after creation",
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    env: Mapped[str] = mapped_column(
        String(20),
        default="development",
        nullable=False,
        comment="Environment the flag is active in",
    )
    version: Mapped[str] = mapped_column(String(50), default="v1", nullable=False)
    percentage: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    users: Mapped[list[str]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="User ids that are always enabled",
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    activates_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deactivates_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dependencies: Mapped[list[str]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="Flag names that must all be enabled",
    )
    group: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)
    rate_limit: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Max evaluations per user per window",
    )
    fallback_flag: Mapped[str | None] = mapped_column(String(100), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    context_data: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        default=dict,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<FeatureFlag(id={self.id}, name={self.name!r}, env={self.env!r})>"
