"""API router for the feature flags feature.

Endpoints:
    GET    /features/                        - List flags (admin)
    POST   /features/                        - Create a flag (admin)
    GET    /features/{feature_id}            - Get a flag (admin)
    PUT    /features/{feature_id}            - Update a flag (admin)
    DELETE /features/{feature_id}            - Delete a flag (admin)
    PATCH  /features/group/{group}/toggle    - Enable/disable a group (admin)
    GET    /features/{name}/enabled          - Evaluate a flag (authenticated)

Example Usage:
    # Roll a flag out to 25% of users
    POST /features/
    {"name": "new-checkout", "description": "New checkout flow",
     "enabled": true, "percentage": 25}

    # Evaluate it for a user
    GET /features/new-checkout/enabled?version=v1&user_id=user-42
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from flag_service.core.dependencies.auth import AdminUser, CurrentUser
from flag_service.features.featureflags.dependencies import FeatureFlagServiceDep
from flag_service.features.featureflags.evaluation import DEFAULT_VERSION
from flag_service.features.featureflags.schemas import (
    FeatureEvaluationResponse,
    FeatureFlagCreate,
    FeatureFlagListResponse,
    FeatureFlagResponse,
    FeatureFlagUpdate,
    ToggleGroupRequest,
    ToggleGroupResponse,
)

router = APIRouter(prefix="/features", tags=["features"])


@router.get(
    "/",
    response_model=FeatureFlagListResponse,
    summary="List feature flags",
)
async def list_features(_: AdminUser, service: FeatureFlagServiceDep) -> FeatureFlagListResponse:
    return await service.get_all_features()


@router.post(
    "/",
    response_model=FeatureFlagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a feature flag",
    description="Create a flag and seed its cached global result. Names are unique.",
)
async def create_feature(
    payload: FeatureFlagCreate,
    _: AdminUser,
    service: FeatureFlagServiceDep,
) -> FeatureFlagResponse:
    return await service.create_feature(payload)


@router.patch(
    "/group/{group}/toggle",
    response_model=ToggleGroupResponse,
    summary="Toggle every flag in a group",
)
async def toggle_group(
    group: str,
    payload: ToggleGroupRequest,
    _: AdminUser,
    service: FeatureFlagServiceDep,
) -> ToggleGroupResponse:
    """Set ``enabled`` on each flag in the group, one at a time.

    Not atomic: if one update fails, the flags updated before it stay updated.
    """
    count = await service.toggle_group(group, payload.enabled)
    return ToggleGroupResponse(group=group, enabled=payload.enabled, count=count)


@router.get(
    "/{name}/enabled",
    response_model=FeatureEvaluationResponse,
    summary="Evaluate a feature flag",
)
async def is_feature_enabled(
    name: str,
    _: CurrentUser,
    service: FeatureFlagServiceDep,
    version: Annotated[str, Query(min_length=1, max_length=50)] = DEFAULT_VERSION,
    user_id: Annotated[str | None, Query(max_length=255)] = None,
) -> FeatureEvaluationResponse:
    """Whether the flag is on for ``version`` and, optionally, a user.

    Unknown flags and flags for another environment evaluate to false
    (or to their fallback flag).
    """
    enabled = await service.is_feature_enabled(name, version, user_id)
    return FeatureEvaluationResponse(feature=name, version=version, user_id=user_id, enabled=enabled)


@router.get(
    "/{feature_id}",
    response_model=FeatureFlagResponse,
    summary="Get a feature flag",
)
async def get_feature(
    feature_id: UUID,
    _: AdminUser,
    service: FeatureFlagServiceDep,
) -> FeatureFlagResponse:
    return await service.get_feature_by_id(feature_id)


@router.put(
    "/{feature_id}",
    response_model=FeatureFlagResponse,
    summary="Update a feature flag",
    description="Partial update; `name` cannot be changed. Invalidates the cached global result.",
)
async def update_feature(
    feature_id: UUID,
    payload: FeatureFlagUpdate,
    _: AdminUser,
    service: FeatureFlagServiceDep,
) -> FeatureFlagResponse:
    return await service.update_feature(feature_id, payload)


@router.delete(
    "/{feature_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a feature flag",
)
async def delete_feature(
    feature_id: UUID,
    _: AdminUser,
    service: FeatureFlagServiceDep,
) -> None:
    await service.delete_feature(feature_id)
