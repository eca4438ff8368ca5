"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter

from flag_service.core.settings import get_app_settings
from flag_service.features.featureflags.router import router as featureflags_router
from flag_service.features.metrics.router import router as metrics_router
from flag_service.features.users.router import router as users_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from flag_service.core.settings.app import AppSettings

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to Feature Flag Management API"

index_router = APIRouter(tags=["index"])


@index_router.get("/", summary="Service banner")
async def index() -> dict[str, str]:
    """Return a greeting and a pointer to the interactive docs."""
    settings = get_app_settings()
    return {
        "message": WELCOME_MESSAGE,
        "documentation": settings.get_docs_url() or "",
    }


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
    """
    app_settings = app_settings or get_app_settings()
    api_prefix = app_settings.api_prefix

    app.include_router(index_router)

    # Metrics endpoint has no prefix - accessible at /metrics
    app.include_router(metrics_router, tags=["observability"])

    app.include_router(featureflags_router, prefix=api_prefix, tags=["features"])
    app.include_router(users_router, prefix=api_prefix, tags=["users"])

    logger.info(
        "Routers registered",
        extra={"api_prefix": api_prefix, "route_count": len(app.routes)},
    )
