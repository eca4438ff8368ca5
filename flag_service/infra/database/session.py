"""Database session management with SQLAlchemy 2.0 async.

The engine and session factory are created once at import time from
``PostgresSettings``. Request handlers get a session through the
``get_db_session`` dependency; scripts and background tasks use
``get_async_session()`` directly.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flag_service.core.database import Base
from flag_service.core.settings import get_db_settings

logger = logging.getLogger(__name__)

db_settings = get_db_settings()


def _engine_kwargs() -> dict[str, Any]:
    kwargs = db_settings.sqlalchemy_engine_kwargs()
    # In-memory sqlite lives on a single connection
    if db_settings.is_sqlite and (":memory:" in db_settings.url or db_settings.url.endswith("://")):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


engine: AsyncEngine = create_async_engine(db_settings.url, **_engine_kwargs())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.

    Example:
        async with get_async_session() as session:
            result = await session.execute(select(FeatureFlag))
            flags = result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database() -> None:
    """Verify database connectivity.

    SQLite databases (local runs, tests) get their tables created here;
    PostgreSQL schemas are managed by alembic.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the database cannot be reached.
    """
    logger.info("Initializing database connection", extra={"sqlite": db_settings.is_sqlite})

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if db_settings.is_sqlite:
                from flag_service.core import models  # noqa: F401

                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connection established successfully")
    except Exception as e:
        logger.error("Failed to connect to database", extra={"error": str(e)})
        raise


async def close_database() -> None:
    """Close database connection and cleanup resources.

    This should be called during application shutdown.
    """
    logger.info("Closing database connection")

    try:
        await engine.dispose()
        logger.info("Database connection closed successfully")
    except Exception as e:
        logger.exception("Error closing database connection", extra={"error": str(e)})


__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "engine",
    "get_async_session",
    "init_database",
]
