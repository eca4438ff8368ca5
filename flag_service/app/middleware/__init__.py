"""Middleware configuration for FastAPI application.

Middleware is applied in REVERSE order (last added = first to execute).
Execution order, outermost to innermost:

    1. Request ID        tags logs and responses with X-Request-ID
    2. Security headers  HSTS, CSP, framing and sniffing protection
    3. Metrics           records HTTP metrics and X-Process-Time
    4. Rate limit        per client IP, 429 once the window is spent
    5. CORS              only when APP_CORS_ORIGINS is set

Authentication is handled at endpoint level via dependency injection
(see flag_service.core.dependencies.auth).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from flag_service.app.middleware.base import HeaderContextMiddleware
from flag_service.app.middleware.metrics import MetricsMiddleware
from flag_service.app.middleware.rate_limit import RateLimitMiddleware
from flag_service.app.middleware.request_id import RequestIDMiddleware
from flag_service.app.middleware.security_headers import SecurityHeadersMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from flag_service.core.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "HeaderContextMiddleware",
    "MetricsMiddleware",
    "RateLimitMiddleware",
    "RequestIDMiddleware",
    "SecurityHeadersMiddleware",
    "configure_middleware",
]


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Unified settings instance with all configuration domains
    """
    app_settings = settings.app

    logger.info(
        "Configuring middleware stack",
        extra={
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "service": app_settings.service_name,
        },
    )

    if app_settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_credentials=app_settings.cors_allow_credentials,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORSMiddleware enabled with origins: %s", app_settings.cors_origins)

    if app_settings.enable_rate_limiting:
        app.add_middleware(
            RateLimitMiddleware,
            limit=app_settings.rate_limit_requests,
            window=app_settings.rate_limit_window_seconds,
            trust_forwarded=app_settings.rate_limit_trust_forwarded,
        )
        logger.info(
            "RateLimitMiddleware enabled: %s requests per %ss per client",
            app_settings.rate_limit_requests,
            app_settings.rate_limit_window_seconds,
        )

    app.add_middleware(MetricsMiddleware)

    docs_enabled = not app_settings.disable_docs
    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=not app_settings.debug,
        hsts_max_age=app_settings.hsts_max_age,
        docs_enabled=docs_enabled,
    )
    logger.info(
        "SecurityHeadersMiddleware enabled with %s CSP",
        "docs-compatible" if docs_enabled else "strict",
    )

    # Added last so it runs first and every downstream log carries the request ID
    app.add_middleware(RequestIDMiddleware)

    logger.info(
        "All middleware configured successfully",
        extra={
            "middleware_count": len(app.user_middleware),
            "environment": app_settings.environment,
        },
    )
