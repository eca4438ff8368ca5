"""Repository for the feature flags feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from flag_service.core.database.repository import BaseRepository
from flag_service.features.featureflags.models import FeatureFlag

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession


class FeatureFlagRepository(BaseRepository[FeatureFlag]):
    """Repository for FeatureFlag model.

    Inherits from BaseRepository:
        - get(session, id) -> FeatureFlag | None
        - get_by(session, attr, value) -> FeatureFlag | None
        - list(session, limit, offset) -> Sequence[FeatureFlag]
        - create(session, instance) -> FeatureFlag
        - save(session, instance) -> FeatureFlag
        - delete(session, instance) -> None

    Feature-specific methods below.
    """

    def __init__(self) -> None:
        super().__init__(FeatureFlag)

    async def find_by_name(self, session: AsyncSession, name: str) -> FeatureFlag | None:
        return await self.get_by(session, FeatureFlag.name, name)

    async def find_by_group(self, session: AsyncSession, group: str) -> Sequence[FeatureFlag]:
        """Flags in ``group``, oldest first."""
        stmt = select(FeatureFlag).where(FeatureFlag.group == group).order_by(FeatureFlag.created_at.asc())
        result = await session.execute(stmt)
        flags = result.scalars().all()

        self._lazy.debug(lambda: f"db.find_by_group({group!r}) -> {len(flags)} flags")
        return flags

    async def list_all(self, session: AsyncSession) -> Sequence[FeatureFlag]:
        return await self.list(session, order_by=FeatureFlag.created_at)

    async def delete_expired(self, session: AsyncSession, now: datetime) -> list[tuple[str, str]]:
        """Delete flags whose ``expires_at`` is before ``now``.

        Returns:
            ``(name, version)`` of every deleted flag.
        """
        stmt = (
            delete(FeatureFlag)
            .where(FeatureFlag.expires_at.is_not(None), FeatureFlag.expires_at < now)
            .returning(FeatureFlag.name, FeatureFlag.version)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        removed = [(row.name, row.version) for row in result]

        self._lazy.debug(lambda: f"db.delete_expired(now={now.isoformat()}) -> {len(removed)} removed")
        return removed


_feature_flag_repository: FeatureFlagRepository | None = None


def get_feature_flag_repository() -> FeatureFlagRepository:
    """Get the shared FeatureFlagRepository instance."""
    global _feature_flag_repository
    if _feature_flag_repository is None:
        _feature_flag_repository = FeatureFlagRepository()
    return _feature_flag_repository
