"""Authentication dependencies: bearer tokens and role checks.

Usage:
    from flag_service.core.dependencies.auth import AdminUser, CurrentUser

    @router.get("/me")
    async def me(user: CurrentUser) -> UserResponse: ...

    @router.delete("/{user_id}")
    async def delete(user_id: UUID, admin: AdminUser) -> None: ...

Errors are RFC 7807 problem details:
    401 missing, malformed or expired token, or a user that no longer exists
    403 authenticated but the role is not allowed
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from flag_service.core.dependencies.database import get_db_session
from flag_service.core.exceptions import (
    InsufficientPermissionsError,
    MissingAuthenticationError,
    TokenInvalidError,
)
from flag_service.features.users.models import ROLE_ADMIN, User
from flag_service.features.users.repository import get_user_repository
from flag_service.infra.auth import decode_access_token
from flag_service.infra.logging import set_log_context

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> User:
    """Resolve the caller from the ``Authorization: Bearer`` header.

    Raises:
        MissingAuthenticationError: No bearer token.
        TokenExpiredError: The token has expired.
        TokenInvalidError: Bad token, or its user no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise MissingAuthenticationError()

    claims = decode_access_token(credentials.credentials)
    try:
        user_id = UUID(str(claims["sub"]))
    except ValueError as e:
        raise TokenInvalidError() from e

    user = await get_user_repository().get(session, user_id)
    if user is None:
        logger.info("Token for unknown user rejected", extra={"subject": str(user_id)})
        raise TokenInvalidError(detail="User for this token no longer exists")

    set_log_context(user_id=str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory admitting only the given roles.

    Example:
        @router.get("/", dependencies=[Depends(require_roles("admin"))])
    """
    allowed = list(roles)

    async def _check_roles(user: CurrentUser) -> User:
        if user.role not in allowed:
            logger.info(
                "Role check failed",
                extra={"required_roles": allowed, "user_role": user.role},
            )
            raise InsufficientPermissionsError(required_roles=allowed, user_role=user.role)
        return user

    return _check_roles


AdminUser = Annotated[User, Depends(require_roles(ROLE_ADMIN))]

__all__ = [
    "AdminUser",
    "CurrentUser",
    "bearer_scheme",
    "get_current_user",
    "require_roles",
]
