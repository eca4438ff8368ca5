"""Request ID middleware for per-request tracking.

This middleware:
1. Extracts request ID from X-Request-ID header if present
2. Generates a new UUID if header is missing
3. Stores the ID in request.state.request_id
4. Adds the ID (plus method and path) to the logging context
5. Includes X-Request-ID in response headers
6. Cleans up logging context after request completes
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flag_service.app.middleware.base import HeaderContextMiddleware, generate_uuid
from flag_service.infra.logging.context import set_log_context

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send


class RequestIDMiddleware(HeaderContextMiddleware):
    """Add unique request ID to all requests for correlation.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    header_name = "x-request-id"
    state_key = "request_id"
    log_context_key = "request_id"
    should_clear_context_on_finish = True

    def generate_value(self) -> str:
        return generate_uuid()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            set_log_context(method=scope.get("method"), path=scope.get("path"))
        await super().__call__(scope, receive, send)
