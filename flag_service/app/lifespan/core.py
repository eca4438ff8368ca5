"""Core lifespan services: logging.

Runs first and has no dependencies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flag_service.infra.logging.config import setup_logging, shutdown

from .registry import lifespan_registry

if TYPE_CHECKING:
    from flag_service.core.settings.app import AppSettings
    from flag_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)


@lifespan_registry.register(name="core", startup_order=1)
async def startup_core(
    app_settings: AppSettings,
    log_settings: LoggingSettings,
    **kwargs: object,
) -> None:
    """Configure logging."""
    setup_logging(log_settings=log_settings, force=True)
    logger.info(
        "Application starting",
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "version": app_settings.version,
        },
    )


@lifespan_registry.register(name="core")
async def shutdown_core(**kwargs: object) -> None:
    """Flush queued log records."""
    logger.info("Application shutdown complete")
    shutdown()
