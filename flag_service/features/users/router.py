"""API router for the users feature.

Endpoints:
    POST   /users/register   - Create an account (public)
    POST   /users/login      - Exchange credentials for a token (public)
    GET    /users/me         - The caller's profile
    GET    /users/           - List users (admin)
    GET    /users/{user_id}  - Get a user (admin)
    PUT    /users/{user_id}  - Update a user (self or admin)
    DELETE /users/{user_id}  - Delete a user (admin)
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from flag_service.core.dependencies.auth import AdminUser, CurrentUser
from flag_service.core.dependencies.database import get_db_session
from flag_service.features.users.schemas import (
    LoginResponse,
    UserCreate,
    UserListResponse,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from flag_service.features.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: Annotated[AsyncSession, Depends(get_db_session)]) -> UserService:
    return UserService(session)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
async def register(payload: UserCreate, service: UserServiceDep) -> UserResponse:
    return await service.register(payload)


@router.post("/login", response_model=LoginResponse, summary="Log in")
async def login(payload: UserLogin, service: UserServiceDep) -> LoginResponse:
    """Return the user and a bearer token."""
    return await service.login(payload)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def get_me(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("/", response_model=UserListResponse, summary="List users")
async def list_users(_: AdminUser, service: UserServiceDep) -> UserListResponse:
    return await service.get_users_all()


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: UUID, _: AdminUser, service: UserServiceDep) -> UserResponse:
    return await service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    user: CurrentUser,
    service: UserServiceDep,
) -> UserResponse:
    """Users may update themselves; admins may update anyone and change roles."""
    return await service.update_user(user_id, payload, user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user")
async def delete_user(user_id: UUID, _: AdminUser, service: UserServiceDep) -> None:
    await service.delete_user(user_id)
