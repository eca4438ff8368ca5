"""Pydantic schemas for the users feature."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel

Role = Literal["user", "admin"]

UserName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]

# Lowercase, uppercase, digit and one of @$!%*?&
_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


def _lower(value: str | None) -> str | None:
    return value.lower() if value is not None else None


class UserCreate(BaseModel):
    """Registration payload."""

    name: UserName
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        if not _PASSWORD_PATTERN.match(v):
            msg = (
                "Password must contain at least one lowercase letter, one uppercase letter, "
                "one number, and one special character (@$!%*?&)"
            )
            raise ValueError(msg)
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserUpdate(BaseModel):
    """Partial update. Only admins may change ``role``."""

    name: UserName | None = None
    email: EmailStr | None = None
    role: Role | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _lower(v)

    @model_validator(mode="after")
    def check_not_empty(self) -> UserUpdate:
        if not self.model_fields_set:
            msg = "At least one field must be provided for update"
            raise ValueError(msg)
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                msg = f"{field} cannot be null"
                raise ValueError(msg)
        return self


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    count: int
    users: list[UserResponse]


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


__all__ = [
    "LoginResponse",
    "Role",
    "UserCreate",
    "UserListResponse",
    "UserLogin",
    "UserResponse",
    "UserUpdate",
]
