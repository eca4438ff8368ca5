"""Tests for logging context propagation and JSON formatting."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import pytest

from flag_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from flag_service.infra.logging.formatters import JSONFormatter
from flag_service.infra.logging.lazy import get_lazy_logger


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(msg: str = "Feature check", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("flags", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_filter_injects_context_without_overwriting() -> None:
    set_log_context(request_id="req-1", feature="from-context")
    record = _record(feature="from-call")

    assert ContextInjectingFilter().filter(record)

    assert record.request_id == "req-1"
    assert record.feature == "from-call"


@pytest.mark.asyncio
async def test_context_is_isolated_per_task() -> None:
    async def handle(request_id: str) -> dict[str, object]:
        set_log_context(request_id=request_id)
        await asyncio.sleep(0)
        return get_log_context()

    first, second = await asyncio.gather(handle("a"), handle("b"))

    assert first == {"request_id": "a"}
    assert second == {"request_id": "b"}
    assert get_log_context() == {}


def test_json_formatter_includes_extra_and_static_fields() -> None:
    formatter = JSONFormatter(static={"service": "flag-service"})

    data = json.loads(formatter.format(_record(feature="beta", enabled=True)))

    assert data["level"] == "INFO"
    assert data["logger"] == "flags"
    assert data["message"] == "Feature check"
    assert data["feature"] == "beta"
    assert data["enabled"] is True
    assert data["service"] == "flag-service"
    assert data["timestamp"].endswith("Z")
    assert "trace_id" not in data


def test_json_formatter_flattens_exceptions() -> None:
    try:
        raise ValueError("bad flag")
    except ValueError:
        record = logging.LogRecord("flags", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    line = JSONFormatter().format(record)

    assert "\n" not in line
    assert "ValueError: bad flag" in json.loads(line)["exception"]


def test_lazy_logger_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    calls: list[int] = []

    def expensive() -> str:
        calls.append(1)
        return "built"

    lazy = get_lazy_logger("flag_service.tests.lazy")
    with caplog.at_level(logging.INFO, logger="flag_service.tests.lazy"):
        lazy.debug(expensive)
        lazy.info(expensive)

    assert calls == [1]
    assert "built" in caplog.text
