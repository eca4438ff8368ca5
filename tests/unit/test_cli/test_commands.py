"""Tests for the flag-service CLI.

Testing approach:
- Uses Click's CliRunner for command invocation
- Commands run their own event loop, so these tests are synchronous
- Sessions come from a per-test SQLite file instead of the configured database
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import pytest
from click.testing import CliRunner
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from flag_service import __version__
from flag_service.cli.main import cli
from flag_service.core import models
from flag_service.core.database import Base
from flag_service.features.featureflags import tasks
from flag_service.features.featureflags.schemas import FeatureFlagCreate
from flag_service.features.featureflags.store import DatabaseFlagStore
from flag_service.infra import database

ADMIN_INPUT = "Admin User\nadmin@example.com\nPassw0rd!\nPassw0rd!\n"


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def sqlite_sessions(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point every CLI session at a SQLite file that outlives each command's event loop."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'flags.db'}"
    _ = models

    @asynccontextmanager
    async def _session():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with factory() as session:
                yield session
        finally:
            await engine.dispose()

    monkeypatch.setattr(database, "get_async_session", _session)
    monkeypatch.setattr(tasks, "get_async_session", _session)
    return _session


def _seed(sessions, *flags: FeatureFlagCreate) -> None:
    async def _run() -> None:
        async with sessions() as session:
            store = DatabaseFlagStore(session)
            for flag in flags:
                await store.create(flag)

    asyncio.run(_run())


def test_help_lists_command_groups(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "users" in result.output
    assert "flags" in result.output


def test_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_create_admin(cli_runner: CliRunner, sqlite_sessions) -> None:
    result = cli_runner.invoke(cli, ["users", "create-admin"], input=ADMIN_INPUT)

    assert result.exit_code == 0, result.output
    assert "Admin created successfully" in result.output
    assert "admin@example.com" in result.output
    assert "admin" in result.output


def test_create_admin_twice_fails(cli_runner: CliRunner, sqlite_sessions) -> None:
    cli_runner.invoke(cli, ["users", "create-admin"], input=ADMIN_INPUT)

    result = cli_runner.invoke(cli, ["users", "create-admin"], input=ADMIN_INPUT)

    assert result.exit_code == 1
    assert "Email already in use" in result.output


def test_create_admin_rejects_weak_password(cli_runner: CliRunner, sqlite_sessions) -> None:
    result = cli_runner.invoke(
        cli,
        ["users", "create-admin", "--name", "Admin", "--email", "admin@example.com", "--password", "weakpass"],
    )

    assert result.exit_code == 1
    assert "password" in result.output


def test_list_without_flags(cli_runner: CliRunner, sqlite_sessions) -> None:
    result = cli_runner.invoke(cli, ["flags", "list"])

    assert result.exit_code == 0
    assert "No feature flags found" in result.output


def test_list_filters_by_group(cli_runner: CliRunner, sqlite_sessions) -> None:
    _seed(
        sqlite_sessions,
        FeatureFlagCreate(name="checkout-v2", description="new checkout", env="test", group="checkout", percentage=25),
        FeatureFlagCreate(name="search-v2", description="new search", env="test", group="search"),
    )

    result = cli_runner.invoke(cli, ["flags", "list", "--group", "checkout"])

    assert result.exit_code == 0
    assert "checkout-v2 (v1, test)" in result.output
    assert "Rollout: 25%" in result.output
    assert "search-v2" not in result.output
    assert "Total: 1 flags" in result.output


def test_check_evaluates_flag(cli_runner: CliRunner, sqlite_sessions) -> None:
    _seed(
        sqlite_sessions,
        FeatureFlagCreate(name="beta", description="beta", env="test", enabled=True, users=["u1"]),
    )

    allowed = cli_runner.invoke(cli, ["flags", "check", "beta", "--user", "u1"])
    unknown = cli_runner.invoke(cli, ["flags", "check", "ghost"])

    assert allowed.exit_code == 0
    assert "beta (v1) for u1: enabled" in allowed.output
    assert "ghost (v1): disabled" in unknown.output


def test_check_rejects_blank_name(cli_runner: CliRunner, sqlite_sessions) -> None:
    result = cli_runner.invoke(cli, ["flags", "check", "   "])

    assert result.exit_code == 2


def test_purge_expired(cli_runner: CliRunner, sqlite_sessions) -> None:
    now = datetime.now(UTC)
    _seed(
        sqlite_sessions,
        FeatureFlagCreate(name="old", description="old", env="test", expires_at=now - timedelta(hours=1)),
        FeatureFlagCreate(name="fresh", description="fresh", env="test", expires_at=now + timedelta(hours=1)),
    )

    result = cli_runner.invoke(cli, ["flags", "purge-expired"])

    assert result.exit_code == 0, result.output
    assert "Removed 1 expired flag(s)" in result.output
