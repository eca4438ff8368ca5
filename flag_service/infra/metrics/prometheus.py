"""Prometheus metrics for monitoring with exemplar support."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Create custom registry for better control and exemplar support
REGISTRY = CollectorRegistry()

# Covers response times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)

# Cache metrics
cache_hits_total = Counter(
    "cache_hits_total",
    "Total number of cache hits",
    ["cache_name"],
    registry=REGISTRY,
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total number of cache misses",
    ["cache_name"],
    registry=REGISTRY,
)

cache_errors_total = Counter(
    "cache_errors_total",
    "Cache operations that failed and were bypassed",
    ["operation", "cache_name"],
    registry=REGISTRY,
)

cache_operation_duration_seconds = Histogram(
    "cache_operation_duration_seconds",
    "Cache operation duration in seconds",
    ["operation", "cache_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Feature flag metrics
feature_evaluations_total = Counter(
    "feature_evaluations_total",
    "Feature flag evaluations by outcome",
    ["feature", "enabled"],
    registry=REGISTRY,
)

feature_rate_limited_total = Counter(
    "feature_rate_limited_total",
    "Evaluations forced off because the per-user window was exhausted",
    ["feature"],
    registry=REGISTRY,
)

feature_flags_expired_total = Counter(
    "feature_flags_expired_total",
    "Flags removed by the expiry sweeper",
    registry=REGISTRY,
)
