"""Application lifespan management.

The lifespan context manager runs every registered startup hook in
dependency order and shuts them down in reverse.

    core      logging
    database  engine connectivity (tables created for sqlite)
    cache     Redis result cache and evaluation rate limiter
    tasks     expired flag sweeper
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

# Import all lifespan modules to register their hooks
from flag_service.app.lifespan import cache, core, database, tasks
from flag_service.app.lifespan.registry import lifespan_registry
from flag_service.core.settings import (
    get_app_settings,
    get_db_settings,
    get_flag_settings,
    get_logging_settings,
    get_redis_settings,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

# Ensure modules are imported (for side effects - hook registration)
_ = (cache, core, database, tasks)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start services before serving requests and stop them afterwards."""
    app_settings = get_app_settings()
    hook_kwargs = {
        "app": app,
        "app_settings": app_settings,
        "db_settings": get_db_settings(),
        "redis_settings": get_redis_settings(),
        "log_settings": get_logging_settings(),
        "flag_settings": get_flag_settings(),
    }

    await lifespan_registry.startup(**hook_kwargs)
    logger.info(
        "Application startup complete - listening on %s:%s",
        app_settings.host,
        app_settings.port,
        extra={"service": app_settings.service_name, "environment": app_settings.environment},
    )

    try:
        yield
    finally:
        logger.info("Application shutting down")
        await lifespan_registry.shutdown(**hook_kwargs)


__all__ = ["lifespan", "lifespan_registry"]
