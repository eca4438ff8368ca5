"""Password hashing and access tokens."""

from flag_service.infra.auth.passwords import get_password_context, hash_password, verify_password
from flag_service.infra.auth.tokens import create_access_token, decode_access_token

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_password_context",
    "hash_password",
    "verify_password",
]
