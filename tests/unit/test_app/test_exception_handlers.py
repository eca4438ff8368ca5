"""Tests for the problem details exception handlers."""

from __future__ import annotations

import json

import pytest
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from flag_service.app.exception_handlers import (
    app_exception_handler,
    generic_exception_handler,
    pydantic_validation_exception_handler,
    validation_exception_handler,
)
from flag_service.core.exceptions import ConflictException, TokenExpiredError
from flag_service.features.featureflags.exceptions import FlagBackendUnavailableError


def _build_request(path: str = "/api/v1/features/", request_id: str | None = "req-123") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": [],
        "state": {"request_id": request_id} if request_id else {},
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_app_exception_renders_problem_details() -> None:
    exc = ConflictException(
        detail="Feature with name 'beta' already exists",
        type="feature-name-exists",
        extra={"name": "beta"},
    )

    response = await app_exception_handler(_build_request(), exc)
    body = json.loads(response.body)

    assert response.status_code == 409
    assert body == {
        "type": "feature-name-exists",
        "title": "Conflict",
        "status": 409,
        "detail": "Feature with name 'beta' already exists",
        "instance": "/api/v1/features/",
        "name": "beta",
        "request_id": "req-123",
    }
    assert "www-authenticate" not in response.headers


@pytest.mark.asyncio
async def test_unauthorized_adds_bearer_challenge() -> None:
    response = await app_exception_handler(_build_request(request_id=None), TokenExpiredError())
    body = json.loads(response.body)

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert body["type"] == "token-expired"
    assert "request_id" not in body


@pytest.mark.asyncio
async def test_service_unavailable() -> None:
    response = await app_exception_handler(_build_request(), FlagBackendUnavailableError(operation="find_by_name"))

    assert response.status_code == 503
    assert json.loads(response.body)["operation"] == "find_by_name"


@pytest.mark.asyncio
async def test_request_validation_lists_fields_without_input() -> None:
    exc = RequestValidationError(
        [
            {
                "loc": ("body", "percentage"),
                "msg": "Input should be less than or equal to 100",
                "type": "less_than_equal",
                "input": 150,
            }
        ]
    )

    response = await validation_exception_handler(_build_request(), exc)
    body = json.loads(response.body)

    assert response.status_code == 422
    assert body["type"] == "validation-error"
    assert body["errors"] == [
        {
            "field": "body.percentage",
            "message": "Input should be less than or equal to 100",
            "type": "less_than_equal",
        }
    ]
    assert "150" not in response.body.decode()


@pytest.mark.asyncio
async def test_pydantic_validation_error() -> None:
    class Payload(BaseModel):
        percentage: int

    with pytest.raises(ValidationError) as exc_info:
        Payload(percentage="many")

    response = await pydantic_validation_exception_handler(_build_request(), exc_info.value)
    body = json.loads(response.body)

    assert response.status_code == 422
    assert body["errors"][0]["field"] == "percentage"


@pytest.mark.asyncio
async def test_generic_exception_hides_details() -> None:
    response = await generic_exception_handler(_build_request(), RuntimeError("secret connection string"))
    body = json.loads(response.body)

    assert response.status_code == 500
    assert body["type"] == "internal-error"
    assert body["detail"] == "An unexpected error occurred while processing your request"
    assert "secret" not in response.body.decode()
