"""Prometheus metrics."""

from flag_service.infra.metrics.prometheus import (
    REGISTRY,
    cache_errors_total,
    cache_hits_total,
    cache_misses_total,
    cache_operation_duration_seconds,
    feature_evaluations_total,
    feature_flags_expired_total,
    feature_rate_limited_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from flag_service.infra.metrics.tracing import current_trace_exemplar

__all__ = [
    "REGISTRY",
    "cache_errors_total",
    "cache_hits_total",
    "cache_misses_total",
    "cache_operation_duration_seconds",
    "current_trace_exemplar",
    "feature_evaluations_total",
    "feature_flags_expired_total",
    "feature_rate_limited_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "http_requests_total",
]
