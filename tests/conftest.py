"""Pytest configuration and shared fixtures.

Organization:
    - Application Fixtures: FastAPI app and HTTP client
    - Database Fixtures: SQLAlchemy engine and session
    - Authentication Fixtures: stored users and bearer headers

Everything runs without external infrastructure: an in-memory SQLite
database per test, no Redis, and the expiry sweeper disabled.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

    from flag_service.features.users.models import User

# Must be set before flag_service builds its settings and engine
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("FLAGS_EXPIRY_SWEEP_INTERVAL_SECONDS", "0")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-with-at-least-32-bytes!")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")

TEST_PASSWORD = "Passw0rd!"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine with every table created."""
    from flag_service.core import models
    from flag_service.core.database import Base

    _ = models
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session on the per-test database.

    Example:
        async def test_create_user(db_session):
            db_session.add(User(...))
            await db_session.commit()
    """
    async with session_factory() as session:
        yield session


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Application whose request sessions use the per-test database."""
    from flag_service.app.main import create_app
    from flag_service.core.dependencies.database import get_db_session

    application = create_app()

    async def _override_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = _override_session
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTPX client bound to the app (the lifespan does not run)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================================
# Authentication Fixtures
# ============================================================================


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., object]:
    """Factory storing a user with ``TEST_PASSWORD``."""
    from flag_service.features.users.models import User
    from flag_service.infra.auth import hash_password

    async def _make(email: str, role: str = "user", name: str = "Test User") -> User:
        user = User(name=name, email=email, hashed_password=hash_password(TEST_PASSWORD), role=role)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@example.com", role="admin", name="Admin User")


@pytest.fixture
async def regular_user(make_user) -> User:
    return await make_user("user@example.com")


def bearer(user: User) -> dict[str, str]:
    from flag_service.infra.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def user_headers(regular_user: User) -> dict[str, str]:
    return bearer(regular_user)


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return bearer
