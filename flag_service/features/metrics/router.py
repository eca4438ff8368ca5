"""Prometheus metrics endpoint for observability.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    HTTP Request Metrics:
        - http_requests_total - Total request count by method, path, status
        - http_request_duration_seconds - Request latency histogram
        - http_requests_in_progress - Currently processing requests gauge

    Cache Metrics:
        - cache_hits_total / cache_misses_total - Evaluation cache hit ratio
        - cache_errors_total - Failed cache calls that were bypassed
        - cache_operation_duration_seconds - Redis operation latency

    Feature Flag Metrics:
        - feature_evaluations_total - Evaluations by feature and outcome
        - feature_rate_limited_total - Evaluations forced off by rate limits
        - feature_flags_expired_total - Flags removed by the expiry sweeper
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from flag_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
