"""Password hashing with passlib."""

from __future__ import annotations

from functools import lru_cache

from passlib.context import CryptContext

from flag_service.core.settings import get_auth_settings


@lru_cache(maxsize=1)
def get_password_context() -> CryptContext:
    """bcrypt context, cost factor from ``AUTH_BCRYPT_ROUNDS``."""
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_auth_settings().bcrypt_rounds,
    )


def hash_password(password: str) -> str:
    return get_password_context().hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return get_password_context().verify(password, hashed_password)
