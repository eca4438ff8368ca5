"""Security headers added to every HTTP response.

Covers what a browser-facing API is expected to send: HSTS, a
Content-Security-Policy, framing and MIME sniffing protection, a referrer
policy and a restrictive Permissions-Policy. ``X-Powered-By`` is stripped.

Example:
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=True, docs_enabled=False)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

# Swagger UI and ReDoc load their bundles from jsDelivr
_DOCS_CDN = "https://cdn.jsdelivr.net"


def strict_csp_directives() -> dict[str, str]:
    """CSP for deployments without API docs: no inline or eval'd code."""
    return {
        "default-src": "'self'",
        "script-src": "'self'",
        "style-src": "'self'",
        "img-src": "'self' data:",
        "font-src": "'self'",
        "connect-src": "'self'",
        "frame-ancestors": "'none'",
        "base-uri": "'self'",
        "form-action": "'self'",
    }


def docs_csp_directives() -> dict[str, str]:
    """CSP that still lets Swagger UI and ReDoc render."""
    return {
        "default-src": "'self'",
        "script-src": f"'self' 'unsafe-inline' {_DOCS_CDN}",
        "style-src": f"'self' 'unsafe-inline' {_DOCS_CDN}",
        "img-src": "'self' data: https:",
        "font-src": f"'self' data: {_DOCS_CDN}",
        "connect-src": "'self'",
        "frame-ancestors": "'none'",
        "base-uri": "'self'",
        "form-action": "'self'",
        "worker-src": "'self' blob:",
    }


_PERMISSIONS_POLICY: dict[str, list[str]] = {
    "camera": [],
    "geolocation": [],
    "microphone": [],
    "payment": [],
    "usb": [],
    "fullscreen": ["self"],
}


class SecurityHeadersMiddleware:
    """Pure ASGI middleware that appends security headers to responses.

    Headers are built once at construction; responses that already set one
    of them keep their own value.
    """

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = True,
        hsts_max_age: int = 31536000,
        hsts_include_subdomains: bool = True,
        docs_enabled: bool = True,
        csp_directives: dict[str, str] | None = None,
        frame_options: str = "DENY",
        referrer_policy: str = "strict-origin-when-cross-origin",
    ) -> None:
        self.app = app
        if csp_directives is None:
            csp_directives = docs_csp_directives() if docs_enabled else strict_csp_directives()
        self.headers = self._build_headers(
            enable_hsts=enable_hsts and hsts_max_age > 0,
            hsts_max_age=hsts_max_age,
            hsts_include_subdomains=hsts_include_subdomains,
            csp_directives=csp_directives,
            frame_options=frame_options,
            referrer_policy=referrer_policy,
        )

    @staticmethod
    def _build_headers(
        *,
        enable_hsts: bool,
        hsts_max_age: int,
        hsts_include_subdomains: bool,
        csp_directives: dict[str, str],
        frame_options: str,
        referrer_policy: str,
    ) -> dict[str, str]:
        headers = {
            "Content-Security-Policy": "; ".join(
                f"{directive} {value}" if value else directive
                for directive, value in csp_directives.items()
            ),
            "X-Frame-Options": frame_options,
            "X-Content-Type-Options": "nosniff",
            "X-XSS-Protection": "0",
            "Referrer-Policy": referrer_policy,
            "Permissions-Policy": ", ".join(
                f"{feature}=({' '.join(allow)})" for feature, allow in _PERMISSIONS_POLICY.items()
            ),
            "X-Permitted-Cross-Domain-Policies": "none",
            "Cross-Origin-Opener-Policy": "same-origin",
        }
        if enable_hsts:
            hsts = f"max-age={hsts_max_age}"
            if hsts_include_subdomains:
                hsts += "; includeSubDomains"
            headers["Strict-Transport-Security"] = hsts
        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_security_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    if name not in headers:
                        headers.append(name, value)
                if "x-powered-by" in headers:
                    del headers["x-powered-by"]
            await send(message)

        await self.app(scope, receive, send_with_security_headers)
