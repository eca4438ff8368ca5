"""Flag Store: durable storage for flag records.

``FlagStore`` is the contract the evaluator and the admin service depend
on. ``DatabaseFlagStore`` implements it over SQLAlchemy; tests substitute
in-memory fakes.

Reads return ``FeatureFlagResponse`` models, never ORM instances, so
session state does not leak past the store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from flag_service.features.featureflags.exceptions import (
    DuplicateFeatureNameError,
    FeatureNotFoundError,
    FlagBackendUnavailableError,
)
from flag_service.features.featureflags.models import FeatureFlag
from flag_service.features.featureflags.repository import (
    FeatureFlagRepository,
    get_feature_flag_repository,
)
from flag_service.features.featureflags.schemas import FeatureFlagResponse, FeatureFlagUpdate

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from flag_service.features.featureflags.schemas import FeatureFlagCreate

logger = logging.getLogger(__name__)

# Schema field -> model attribute, where they differ
_ATTRIBUTE_NAMES = {"metadata": "context_data"}
# Patch keys the store applies; ``name``, ``id`` and timestamps are never written
_UPDATABLE_FIELDS = frozenset(FeatureFlagUpdate.model_fields)


class FlagKey(NamedTuple):
    """Identity of a cached global result."""

    name: str
    version: str


class FlagStore(Protocol):
    """Storage contract for flags."""

    async def create(self, data: FeatureFlagCreate) -> FeatureFlagResponse:
        """Persist a new flag. Raises DuplicateFeatureNameError."""
        ...

    async def find_by_name(self, name: str) -> FeatureFlagResponse | None: ...

    async def find_by_id(self, feature_id: UUID) -> FeatureFlagResponse | None: ...

    async def find_by_group(self, group: str) -> list[FeatureFlagResponse]: ...

    async def update(self, feature_id: UUID, patch: dict[str, Any]) -> FeatureFlagResponse:
        """Apply ``patch`` (field -> value), skipping immutable fields. Raises FeatureNotFoundError."""
        ...

    async def delete(self, feature_id: UUID) -> None:
        """Remove a flag. Raises FeatureNotFoundError."""
        ...

    async def list_all(self) -> list[FeatureFlagResponse]: ...

    async def purge_expired(self, now: datetime) -> list[FlagKey]:
        """Remove flags whose ``expires_at`` is before ``now``."""
        ...


class DatabaseFlagStore:
    """FlagStore backed by SQLAlchemy.

    Every mutation commits on its own, so a failure partway through a
    sequence of calls leaves the earlier ones persisted.
    """

    def __init__(
        self,
        session: AsyncSession,
        repository: FeatureFlagRepository | None = None,
    ) -> None:
        self._session = session
        self._repo = repository or get_feature_flag_repository()

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate connectivity failures into FlagBackendUnavailableError."""
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            await self._session.rollback()
            logger.error(
                "Feature flag store unavailable",
                extra={"operation": operation, "error": str(e)},
            )
            raise FlagBackendUnavailableError(operation=operation) from e

    async def create(self, data: FeatureFlagCreate) -> FeatureFlagResponse:
        values = data.model_dump()
        values["context_data"] = values.pop("metadata")
        flag = FeatureFlag(**values)

        async with self._guard("create"):
            if await self._repo.find_by_name(self._session, data.name) is not None:
                raise DuplicateFeatureNameError(data.name)
            try:
                created = await self._repo.create(self._session, flag)
                await self._session.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent create of the same name
                await self._session.rollback()
                raise DuplicateFeatureNameError(data.name) from e

        return FeatureFlagResponse.model_validate(created)

    async def find_by_name(self, name: str) -> FeatureFlagResponse | None:
        async with self._guard("find_by_name"):
            flag = await self._repo.find_by_name(self._session, name)
        return FeatureFlagResponse.model_validate(flag) if flag is not None else None

    async def find_by_id(self, feature_id: UUID) -> FeatureFlagResponse | None:
        async with self._guard("find_by_id"):
            flag = await self._repo.get(self._session, feature_id)
        return FeatureFlagResponse.model_validate(flag) if flag is not None else None

    async def find_by_group(self, group: str) -> list[FeatureFlagResponse]:
        async with self._guard("find_by_group"):
            flags = await self._repo.find_by_group(self._session, group)
        return [FeatureFlagResponse.model_validate(flag) for flag in flags]

    async def update(self, feature_id: UUID, patch: dict[str, Any]) -> FeatureFlagResponse:
        async with self._guard("update"):
            flag = await self._repo.get(self._session, feature_id)
            if flag is None:
                raise FeatureNotFoundError(feature_id)
            for field, value in patch.items():
                if field not in _UPDATABLE_FIELDS:
                    continue
                setattr(flag, _ATTRIBUTE_NAMES.get(field, field), value)
            updated = await self._repo.save(self._session, flag)
            await self._session.commit()
        return FeatureFlagResponse.model_validate(updated)

    async def delete(self, feature_id: UUID) -> None:
        async with self._guard("delete"):
            flag = await self._repo.get(self._session, feature_id)
            if flag is None:
                raise FeatureNotFoundError(feature_id)
            await self._repo.delete(self._session, flag)
            await self._session.commit()

    async def list_all(self) -> list[FeatureFlagResponse]:
        async with self._guard("list_all"):
            flags = await self._repo.list_all(self._session)
        return [FeatureFlagResponse.model_validate(flag) for flag in flags]

    async def purge_expired(self, now: datetime) -> list[FlagKey]:
        async with self._guard("purge_expired"):
            removed = await self._repo.delete_expired(self._session, now)
            await self._session.commit()
        return [FlagKey(name, version) for name, version in removed]


__all__ = ["DatabaseFlagStore", "FlagKey", "FlagStore"]
