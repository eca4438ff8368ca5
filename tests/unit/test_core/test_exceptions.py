"""Tests for core and feature flag exceptions."""

from uuid import UUID

from flag_service.core import exceptions as exc
from flag_service.features.featureflags.exceptions import (
    CacheUnavailableError,
    DuplicateFeatureNameError,
    FeatureNotFoundError,
    FlagBackendUnavailableError,
    FlagValidationError,
)


def test_app_exception_defaults_title() -> None:
    error = exc.AppException(status_code=400, detail="bad")
    assert error.title == "Bad Request"
    assert error.type == "about:blank"
    assert error.extra == {}


def test_unknown_status_gets_generic_title() -> None:
    assert exc.AppException(status_code=418, detail="teapot").title == "Error"


def test_not_found_exception_fields() -> None:
    error = exc.NotFoundException(detail="missing")
    assert error.status_code == 404
    assert error.type == "not-found"
    assert error.title == "Not Found"


def test_insufficient_permissions_records_roles() -> None:
    error = exc.InsufficientPermissionsError(["admin"], "user")
    assert error.status_code == 403
    assert error.extra == {"required_roles": ["admin"], "user_role": "user"}


def test_auth_errors_are_unauthorized() -> None:
    for error in (exc.MissingAuthenticationError(), exc.TokenExpiredError(), exc.TokenInvalidError()):
        assert isinstance(error, exc.UnauthorizedException)
        assert error.status_code == 401


def test_feature_not_found_carries_id() -> None:
    feature_id = UUID("0192f0c2-7c4e-7a51-9d3a-1f2b3c4d5e6f")
    error = FeatureNotFoundError(feature_id)
    assert error.status_code == 404
    assert error.type == "feature-not-found"
    assert error.extra["feature_id"] == str(feature_id)


def test_duplicate_name_is_conflict() -> None:
    error = DuplicateFeatureNameError("beta")
    assert error.status_code == 409
    assert "beta" in error.detail


def test_flag_validation_error_extra() -> None:
    assert FlagValidationError("Feature name must not be blank").extra == {}
    assert FlagValidationError("bad", field="name").extra == {"field": "name"}


def test_backend_unavailable_is_503() -> None:
    error = FlagBackendUnavailableError(operation="find_by_name")
    assert error.status_code == 503
    assert error.extra == {"operation": "find_by_name"}


def test_cache_unavailable_message() -> None:
    cause = ConnectionError("refused")
    error = CacheUnavailableError("get", "feature:beta:v1:global", cause)
    assert error.cause is cause
    assert "feature:beta:v1:global" in str(error)
