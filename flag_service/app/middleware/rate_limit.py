"""Per-client request rate limiting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from flag_service.app.exception_handlers import app_exception_handler
from flag_service.core.exceptions import RateLimitException
from flag_service.infra.ratelimit import InMemoryRateLimiter

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

# Never limited: scrapes and API docs
EXEMPT_PATHS = ["/metrics", "/docs", "/redoc", "/openapi.json"]


class RequestRateLimiter(Protocol):
    async def check_limit(
        self,
        key: str,
        limit: int | None = None,
        window: int | None = None,
        cost: int = 1,
    ) -> tuple[bool, dict[str, int]]: ...


class RateLimitMiddleware:
    """Pure ASGI middleware limiting requests per client IP.

    The limiter is looked up per request on ``app.state.request_rate_limiter``,
    which the cache lifespan hook sets to a Redis limiter shared by every
    instance. Until then, or without Redis, an in-process limiter is used.

    A rejected request gets a 429 problem details response with
    ``Retry-After``. Admitted requests carry ``X-RateLimit-Limit``,
    ``X-RateLimit-Remaining`` and ``X-RateLimit-Reset``. If the limiter
    fails the request is let through.

    Example:
        app.add_middleware(RateLimitMiddleware, limit=100, window=900)
    """

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 100,
        window: int = 900,
        enabled: bool = True,
        exempt_paths: list[str] | None = None,
        trust_forwarded: bool = False,
    ) -> None:
        self.app = app
        self.limit = limit
        self.window = window
        self.enabled = enabled
        self.exempt_paths = exempt_paths if exempt_paths is not None else EXEMPT_PATHS
        self.trust_forwarded = trust_forwarded
        self._local = InMemoryRateLimiter(default_limit=limit, default_window=window)

    def client_key(self, request: Request) -> str:
        """Rate limit key for the client, ``ip:<address>``."""
        forwarded = request.headers.get("x-forwarded-for") if self.trust_forwarded else None
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _is_exempt(self, path: str) -> bool:
        return any(path.startswith(exempt) for exempt in self.exempt_paths)

    def _limiter_for(self, scope: Scope) -> RequestRateLimiter:
        app = scope.get("app")
        shared = getattr(app.state, "request_rate_limiter", None) if app is not None else None
        return shared or self._local

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if not self.enabled or self._is_exempt(path):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        key = self.client_key(request)

        try:
            allowed, metadata = await self._limiter_for(scope).check_limit(
                key,
                limit=self.limit,
                window=self.window,
            )
        except Exception as e:
            logger.error(
                "Rate limit check failed, allowing request",
                extra={"path": path, "key": key, "error": str(e)},
                exc_info=True,
            )
            await self.app(scope, receive, send)
            return

        if not allowed:
            logger.warning(
                "Request rate limit exceeded",
                extra={"path": path, "method": scope.get("method", ""), "key": key},
            )
            exc = RateLimitException(
                detail=f"Too many requests, retry after {metadata['retry_after']} seconds",
                extra=metadata,
            )
            response = await app_exception_handler(request, exc)
            response.headers["Retry-After"] = str(metadata["retry_after"])
            response.headers.update(_rate_limit_headers(metadata))
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in _rate_limit_headers(metadata).items():
                    headers.append(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)


def _rate_limit_headers(metadata: dict[str, int]) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(metadata["limit"]),
        "X-RateLimit-Remaining": str(metadata["remaining"]),
        "X-RateLimit-Reset": str(metadata["reset"]),
    }
