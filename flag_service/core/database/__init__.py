"""Core database package: declarative base, mixins and the generic repository."""

from __future__ import annotations

from .base import NAMING_CONVENTION, Base, JSONType, TimestampMixin, UUIDv7PKMixin, generate_uuid7
from .repository import BaseRepository

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "JSONType",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "generate_uuid7",
]
