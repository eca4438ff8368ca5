"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
        return JSONResponse(
            status_code=404,
            content=ProblemDetails(
                type="feature-not-found",
                title="Not Found",
                status=404,
                detail="Feature with id '0192f...' not found",
                instance="/api/v1/features/0192f...",
            ).model_dump(exclude_none=True),
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(min_length=1, max_length=200, description="Short, human-readable summary of the problem")
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "validation-error",
                "title": "Validation Error",
                "status": 422,
                "detail": "Request validation failed for 1 field(s)",
                "instance": "/api/v1/features/",
            }
        },
    )


class FieldError(BaseModel):
    """One failed field in a validation problem."""

    field: str
    message: str
    type: str


class ValidationProblemDetails(ProblemDetails):
    """Problem details carrying per-field validation errors."""

    errors: list[FieldError] = Field(default_factory=list)
