"""JWT access tokens signed with PyJWT.

Claims:
    sub   user id
    role  user role at issue time
    iat   issued at
    exp   expiry (``AUTH_ACCESS_TOKEN_EXPIRE_MINUTES`` after issue)
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from flag_service.core.exceptions import TokenExpiredError, TokenInvalidError
from flag_service.core.settings import get_auth_settings


def create_access_token(
    user_id: str,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for ``user_id``."""
    settings = get_auth_settings()
    now = datetime.now(UTC)
    expires_at = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        TokenExpiredError: If the token has expired.
        TokenInvalidError: If the token is malformed, badly signed or has no subject.
    """
    settings = get_auth_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError() from exc
    return payload
