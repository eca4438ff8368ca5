"""Service layer for the feature flags feature."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from flag_service.features.featureflags.evaluation import DEFAULT_VERSION
from flag_service.features.featureflags.exceptions import (
    DuplicateFeatureNameError,
    FeatureNotFoundError,
    FlagValidationError,
)
from flag_service.features.featureflags.schemas import FeatureFlagListResponse, FeatureFlagUpdate
from flag_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from uuid import UUID

    from flag_service.features.featureflags.evaluation import FeatureEvaluator
    from flag_service.features.featureflags.schemas import FeatureFlagCreate, FeatureFlagResponse
    from flag_service.features.featureflags.store import FlagKey, FlagStore


# Standard logger for INFO/WARNING/ERROR
logger = logging.getLogger(__name__)
# Lazy logger for DEBUG (zero overhead when DEBUG disabled)
lazy_logger = get_lazy_logger(__name__)


class FeatureFlagService:
    """Flag administration on top of the store and the evaluator.

    Handles:
    - Existence and name uniqueness checks
    - Cache invalidation after every mutation
    - Group toggles
    - Delegating evaluation to the engine
    """

    def __init__(self, store: FlagStore, evaluator: FeatureEvaluator) -> None:
        self._store = store
        self._evaluator = evaluator

    async def create_feature(self, data: FeatureFlagCreate) -> FeatureFlagResponse:
        """Create a flag and seed its global cache entry.

        The seeded value is the evaluated global result, not the raw
        ``enabled`` field, so a new flag with a time window, dependencies,
        another ``env`` or a fallback is cached as it will actually evaluate.

        Raises:
            DuplicateFeatureNameError: If a flag with the name exists.
        """
        if await self._store.find_by_name(data.name) is not None:
            raise DuplicateFeatureNameError(data.name)

        created = await self._store.create(data)
        await self._evaluator.prime(created.name, created.version)

        logger.info(
            "Feature created",
            extra={"feature_id": str(created.id), "feature": created.name, "env": created.env},
        )
        return created

    async def get_all_features(self) -> FeatureFlagListResponse:
        features = await self._store.list_all()
        lazy_logger.debug(lambda: f"service.get_all_features() -> {len(features)} flags")
        return FeatureFlagListResponse(count=len(features), features=features)

    async def get_feature_by_id(self, feature_id: UUID) -> FeatureFlagResponse:
        """Raises FeatureNotFoundError if absent."""
        feature = await self._store.find_by_id(feature_id)
        if feature is None:
            raise FeatureNotFoundError(feature_id)
        return feature

    async def update_feature(
        self,
        feature_id: UUID,
        patch: FeatureFlagUpdate | Mapping[str, Any],
    ) -> FeatureFlagResponse:
        """Apply a partial update and invalidate the flag's global cache entry.

        The entry for the previous version is dropped too when the version
        changes. Per-user entries are left to expire.

        Raises:
            FeatureNotFoundError: If absent.
            FlagValidationError: If the patch is empty or only names ``name``.
        """
        changes = self._to_changes(patch)
        existing = await self.get_feature_by_id(feature_id)
        updated = await self._store.update(feature_id, changes)

        await self._evaluator.invalidate(updated.name, updated.version)
        if existing.version != updated.version:
            await self._evaluator.invalidate(existing.name, existing.version)

        logger.info(
            "Feature updated",
            extra={"feature_id": str(feature_id), "feature": updated.name, "fields": sorted(changes)},
        )
        return updated

    async def delete_feature(self, feature_id: UUID) -> None:
        """Raises FeatureNotFoundError if absent."""
        existing = await self.get_feature_by_id(feature_id)
        await self._store.delete(feature_id)
        await self._evaluator.invalidate(existing.name, existing.version)

        logger.info("Feature deleted", extra={"feature_id": str(feature_id), "feature": existing.name})

    async def toggle_group(self, group: str, enabled: bool) -> int:
        """Set ``enabled`` on every flag in ``group``, one flag at a time.

        Not atomic: a failure leaves the flags already updated as they are.
        Re-running with the same value is safe.

        Returns:
            Number of flags updated.
        """
        flags = await self._store.find_by_group(group)
        for flag in flags:
            await self.update_feature(flag.id, {"enabled": enabled})

        logger.info("Feature group toggled", extra={"group": group, "enabled": enabled, "count": len(flags)})
        return len(flags)

    async def is_feature_enabled(
        self,
        name: str,
        version: str = DEFAULT_VERSION,
        user_id: str | None = None,
    ) -> bool:
        return await self._evaluator.is_feature_enabled(name, version, user_id)

    async def purge_expired(self, now: datetime | None = None) -> list[FlagKey]:
        """Delete flags past ``expires_at`` and drop their cached results."""
        removed = await self._store.purge_expired(now or datetime.now(UTC))
        for key in removed:
            await self._evaluator.invalidate(key.name, key.version)

        if removed:
            logger.info(
                "Expired features removed",
                extra={"count": len(removed), "features": [key.name for key in removed]},
            )
        return removed

    @staticmethod
    def _to_changes(patch: FeatureFlagUpdate | Mapping[str, Any]) -> dict[str, Any]:
        """Validate a patch and return the fields to write.

        Plain mappings go through ``FeatureFlagUpdate`` too, so the field
        bounds hold however the update arrives. Unknown keys and ``name``
        are dropped.
        """
        if isinstance(patch, FeatureFlagUpdate):
            return patch.to_patch()
        try:
            return FeatureFlagUpdate.model_validate(dict(patch)).to_patch()
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise FlagValidationError(error["msg"], **({"field": field} if field else {})) from e
