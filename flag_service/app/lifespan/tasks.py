"""Background task lifespan management: the expired flag sweeper."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flag_service.features.featureflags.tasks import ExpirySweeper

from .registry import lifespan_registry

if TYPE_CHECKING:
    from fastapi import FastAPI

    from flag_service.core.settings.flags import FeatureFlagSettings

logger = logging.getLogger(__name__)


@lifespan_registry.register(name="tasks", startup_order=30, requires=["database", "cache"])
async def startup_tasks(app: FastAPI, flag_settings: FeatureFlagSettings, **kwargs: object) -> None:
    if flag_settings.expiry_sweep_interval_seconds == 0:
        logger.info("Expiry sweeper disabled")
        return

    sweeper = ExpirySweeper(
        app.state.result_cache,
        interval_seconds=flag_settings.expiry_sweep_interval_seconds,
    )
    sweeper.start()
    app.state.expiry_sweeper = sweeper


@lifespan_registry.register(name="tasks")
async def shutdown_tasks(app: FastAPI, **kwargs: object) -> None:
    sweeper: ExpirySweeper | None = getattr(app.state, "expiry_sweeper", None)
    if sweeper is not None:
        await sweeper.stop()
        app.state.expiry_sweeper = None
