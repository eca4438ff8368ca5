"""Repository for the users feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flag_service.core.database.repository import BaseRepository
from flag_service.features.users.models import User

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self) -> None:
        super().__init__(User)

    async def find_by_email(self, session: AsyncSession, email: str) -> User | None:
        return await self.get_by(session, User.email, email.lower())

    async def list_all(self, session: AsyncSession) -> Sequence[User]:
        return await self.list(session, order_by=User.created_at)


_user_repository: UserRepository | None = None


def get_user_repository() -> UserRepository:
    """Get the shared UserRepository instance."""
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository()
    return _user_repository
