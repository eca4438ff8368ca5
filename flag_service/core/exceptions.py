"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=404,
            detail="Feature flag not found",
            type="feature-not-found",
            title="Not Found",
            instance="/api/v1/features/0192f...",
            extra={"feature_id": "0192f..."}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code."""
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            422: "Unprocessable Entity",
            429: "Too Many Requests",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ValidationException(AppException):
    """Exception raised for validation errors that get past request parsing."""

    def __init__(
        self,
        detail: str,
        type: str = "validation-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type=type,
            title="Validation Error",
            instance=instance,
            extra=extra,
        )


class UnauthorizedException(AppException):
    """Exception raised for authentication failures.

    Example:
            raise UnauthorizedException(
            detail="Invalid credentials",
            type="invalid-credentials",
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "unauthorized",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=401,
            detail=detail,
            type=type,
            title="Unauthorized",
            instance=instance,
            extra=extra,
        )


class ForbiddenException(AppException):
    """Exception raised for authorization failures.

    Example:
            raise ForbiddenException(
            detail="Insufficient permissions",
            type="forbidden",
            extra={"required_role": "admin", "user_role": "user"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "forbidden",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=403,
            detail=detail,
            type=type,
            title="Forbidden",
            instance=instance,
            extra=extra,
        )


class ConflictException(AppException):
    """Exception raised for resource conflicts.

    Example:
            raise ConflictException(
            detail="User with email already exists",
            type="resource-conflict",
            extra={"field": "email", "value": "user@example.com"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "conflict",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=409,
            detail=detail,
            type=type,
            title="Conflict",
            instance=instance,
            extra=extra,
        )


class RateLimitException(AppException):
    """Exception raised when a client exceeds the request rate limit.

    Example:
            raise RateLimitException(
            detail="Too many requests, retry after 900 seconds",
            extra={"limit": 100, "remaining": 0, "reset": 1767225600, "retry_after": 900}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "rate-limit-exceeded",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=429,
            detail=detail,
            type=type,
            title="Too Many Requests",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """Exception raised when a backing service is temporarily unavailable.

    Example:
            raise ServiceUnavailableException(
            detail="Database is temporarily unavailable",
            type="service-unavailable",
            extra={"service": "postgresql"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


# ============================================================================
# Authentication Exceptions
# ============================================================================


class MissingAuthenticationError(UnauthorizedException):
    """Exception raised when the bearer token is missing."""

    def __init__(
        self,
        detail: str = "Authentication credentials required",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            type="missing-authentication",
            instance=instance,
            extra=extra,
        )


class TokenExpiredError(UnauthorizedException):
    """Exception raised when an access token has expired."""

    def __init__(
        self,
        detail: str = "Token has expired",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            type="token-expired",
            instance=instance,
            extra=extra,
        )


class TokenInvalidError(UnauthorizedException):
    """Exception raised when an access token cannot be verified."""

    def __init__(
        self,
        detail: str = "Invalid token",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            type="token-invalid",
            instance=instance,
            extra=extra,
        )


class InsufficientPermissionsError(ForbiddenException):
    """Exception raised when the caller's role is not allowed.

    Example:
        raise InsufficientPermissionsError(["admin"], "user")
    """

    def __init__(
        self,
        required_roles: list[str] | None = None,
        user_role: str | None = None,
        detail: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        if detail is None:
            detail = "You do not have permission to perform this action"
        final_extra: dict[str, Any] = {}
        if required_roles:
            final_extra["required_roles"] = required_roles
        if user_role:
            final_extra["user_role"] = user_role
        if extra:
            final_extra.update(extra)
        super().__init__(
            detail=detail,
            type="insufficient-permissions",
            instance=instance,
            extra=final_extra or None,
        )


class InvalidCredentialsError(UnauthorizedException):
    """Exception raised when an email/password pair does not match."""

    def __init__(
        self,
        detail: str = "Invalid credentials",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            type="invalid-credentials",
            instance=instance,
            extra=extra,
        )


__all__ = [
    "AppException",
    "ConflictException",
    "ForbiddenException",
    "InsufficientPermissionsError",
    "InvalidCredentialsError",
    "MissingAuthenticationError",
    "NotFoundException",
    "RateLimitException",
    "ServiceUnavailableException",
    "TokenExpiredError",
    "TokenInvalidError",
    "UnauthorizedException",
    "ValidationException",
]
