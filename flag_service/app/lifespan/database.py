"""Database connection lifespan management."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flag_service.infra.database.session import close_database, init_database

from .registry import lifespan_registry

if TYPE_CHECKING:
    from flag_service.core.settings.postgres import PostgresSettings

logger = logging.getLogger(__name__)


@lifespan_registry.register(name="database", startup_order=10, requires=["core"])
async def startup_database(db_settings: PostgresSettings, **kwargs: object) -> None:
    """Initialize the database connection.

    With ``DB_STARTUP_REQUIRE_DB=false`` an unreachable database is logged
    and startup continues; flag endpoints then answer 503.
    """
    try:
        await init_database()
        logger.info("Database connection initialized")
    except Exception as e:
        if db_settings.startup_require_db:
            logger.exception(
                "Database required but unavailable, failing startup",
                extra={"error": str(e), "startup_require_db": True},
            )
            raise
        logger.warning(
            "Database unavailable, continuing in degraded mode",
            extra={"error": str(e), "startup_require_db": False},
        )


@lifespan_registry.register(name="database")
async def shutdown_database(**kwargs: object) -> None:
    await close_database()
