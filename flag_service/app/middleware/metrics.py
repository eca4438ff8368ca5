"""Metrics middleware for HTTP request instrumentation with trace correlation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from flag_service.infra.metrics.prometheus import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from flag_service.infra.metrics.tracing import current_trace_exemplar

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import Request, Response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect HTTP metrics, linked to traces via exemplars.

    Uses route path templates ("/api/v1/features/{feature_id}") as the
    endpoint label to keep cardinality low, and adds an X-Process-Time
    header to every response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        endpoint = request.url.path
        method = request.method

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        start_time = time.perf_counter()
        status_code = 500  # Default to error in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Process-Time"] = str(time.perf_counter() - start_time)
            return response  # type: ignore[no-any-return]
        finally:
            duration = time.perf_counter() - start_time
            route = request.scope.get("route")
            label = getattr(route, "path", endpoint)
            exemplar = current_trace_exemplar()

            http_request_duration_seconds.labels(method=method, endpoint=label).observe(
                duration, exemplar=exemplar
            )
            http_requests_total.labels(method=method, endpoint=label, status=status_code).inc(
                exemplar=exemplar
            )
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()
