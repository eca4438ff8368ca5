"""Service layer for the users feature."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from flag_service.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidCredentialsError,
    NotFoundException,
)
from flag_service.features.users.models import ROLE_ADMIN, ROLE_USER, User
from flag_service.features.users.repository import UserRepository, get_user_repository
from flag_service.features.users.schemas import LoginResponse, UserListResponse, UserResponse
from flag_service.infra.auth import create_access_token, hash_password, verify_password
from flag_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from flag_service.features.users.schemas import UserCreate, UserLogin, UserUpdate


logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


def _email_taken(email: str) -> ConflictException:
    return ConflictException(
        detail="Email already in use",
        type="email-already-in-use",
        extra={"email": email},
    )


class UserService:
    """Registration, login and user management.

    Every mutation commits before returning.
    """

    def __init__(
        self,
        session: AsyncSession,
        repo: UserRepository | None = None,
    ) -> None:
        self._session = session
        self._repo = repo or get_user_repository()

    async def register(self, data: UserCreate, *, role: str = ROLE_USER) -> UserResponse:
        """Create an account.

        Raises:
            ConflictException: If the email is already registered.
        """
        if await self._repo.find_by_email(self._session, data.email) is not None:
            raise _email_taken(data.email)

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            role=role,
        )
        try:
            created = await self._repo.create(self._session, user)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise _email_taken(data.email) from e

        logger.info("User registered", extra={"user_id": str(created.id), "role": created.role})
        return UserResponse.model_validate(created)

    async def login(self, data: UserLogin) -> LoginResponse:
        """Check credentials and issue an access token.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong.
        """
        user = await self._repo.find_by_email(self._session, data.email)
        if user is None or not verify_password(data.password, user.hashed_password):
            logger.info("Login failed", extra={"reason": "invalid_credentials"})
            raise InvalidCredentialsError()

        token = create_access_token(str(user.id), user.role)
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return LoginResponse(user=UserResponse.model_validate(user), token=token)

    async def get_users_all(self) -> UserListResponse:
        users = await self._repo.list_all(self._session)
        lazy_logger.debug(lambda: f"service.get_users_all() -> {len(users)} users")
        return UserListResponse(count=len(users), users=[UserResponse.model_validate(u) for u in users])

    async def get_user(self, user_id: UUID) -> User:
        user = await self._repo.get(self._session, user_id)
        if user is None:
            raise NotFoundException(
                detail="User not found",
                type="user-not-found",
                extra={"user_id": str(user_id)},
            )
        return user

    async def get_user_by_id(self, user_id: UUID) -> UserResponse:
        """Raises NotFoundException if absent."""
        return UserResponse.model_validate(await self.get_user(user_id))

    async def update_user(self, user_id: UUID, data: UserUpdate, requesting_user: User) -> UserResponse:
        """Update a user's profile.

        Users may update themselves; admins may update anyone. Only admins
        may change a role.

        Raises:
            NotFoundException: If absent.
            ForbiddenException: If the caller may not make this change.
            ConflictException: If the new email is already registered.
        """
        user = await self.get_user(user_id)

        is_admin = requesting_user.role == ROLE_ADMIN
        if requesting_user.id != user.id and not is_admin:
            raise ForbiddenException(
                detail="You are not authorized to update this user",
                type="user-update-forbidden",
            )
        if data.role is not None and data.role != user.role and not is_admin:
            raise ForbiddenException(
                detail="Only administrators can change roles",
                type="role-change-forbidden",
            )

        if data.email is not None and data.email != user.email:
            if await self._repo.find_by_email(self._session, data.email) is not None:
                raise _email_taken(data.email)
            user.email = data.email
        if data.name is not None:
            user.name = data.name
        if data.role is not None:
            user.role = data.role

        try:
            updated = await self._repo.save(self._session, user)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise _email_taken(user.email) from e

        logger.info(
            "User updated",
            extra={"target_user_id": str(user_id), "fields": sorted(data.model_fields_set)},
        )
        return UserResponse.model_validate(updated)

    async def delete_user(self, user_id: UUID) -> None:
        """Raises NotFoundException if absent."""
        user = await self.get_user(user_id)
        await self._repo.delete(self._session, user)
        await self._session.commit()

        logger.info("User deleted", extra={"target_user_id": str(user_id)})
