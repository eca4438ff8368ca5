"""Feature flag errors, rendered as RFC 7807 problem details."""

from __future__ import annotations

from typing import Any

from flag_service.core.exceptions import (
    ConflictException,
    NotFoundException,
    ServiceUnavailableException,
    ValidationException,
)


class FeatureNotFoundError(NotFoundException):
    """No flag with the given id."""

    def __init__(self, feature_id: Any) -> None:
        super().__init__(
            detail=f"Feature with id '{feature_id}' not found",
            type="feature-not-found",
            extra={"feature_id": str(feature_id)},
        )


class DuplicateFeatureNameError(ConflictException):
    """A flag with the name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(
            detail=f"Feature with name '{name}' already exists",
            type="feature-name-exists",
            extra={"name": name},
        )


class FlagValidationError(ValidationException):
    """Input that request parsing cannot catch, such as a blank name."""

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail=detail, type="feature-validation-error", extra=extra or None)


class FlagBackendUnavailableError(ServiceUnavailableException):
    """The flag store could not be reached."""

    def __init__(self, detail: str = "Feature flag store is unavailable", **extra: Any) -> None:
        super().__init__(detail=detail, type="feature-store-unavailable", extra=extra or None)


class CacheUnavailableError(Exception):
    """The result cache backend failed.

    Never reaches the client: the evaluator logs it and bypasses the cache.
    """

    def __init__(self, operation: str, key: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"Cache {operation} failed for {key!r}: {cause}")


__all__ = [
    "CacheUnavailableError",
    "DuplicateFeatureNameError",
    "FeatureNotFoundError",
    "FlagBackendUnavailableError",
    "FlagValidationError",
]
