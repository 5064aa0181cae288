"""
Prometheus metrics for the price service.

Metrics are module-level singletons registered on the default registry;
``render_latest`` serializes them for the ``/metrics`` endpoint.

* ``ltp_cache_hits_total`` / ``ltp_cache_misses_total`` – price cache lookups.
* ``ltp_upstream_calls_total`` – upstream quote fetches attempted, failed ones included.
* ``ltp_upstream_errors_total{kind=...}`` – failed fetches by error kind.
* ``ltp_http_requests_total{method,path,status}`` – handled HTTP requests.
* ``ltp_http_request_duration_seconds{method,path}`` – request latency.
* ``ltp_audit_dropped_total`` – audit records dropped on a full queue.
"""

from __future__ import annotations

from typing import Tuple

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


CACHE_HITS = Counter("ltp_cache_hits_total", "Price cache hits")
CACHE_MISSES = Counter("ltp_cache_misses_total", "Price cache misses")

UPSTREAM_CALLS = Counter("ltp_upstream_calls_total", "Upstream quote fetches attempted")
UPSTREAM_ERRORS = Counter(
    "ltp_upstream_errors_total",
    "Failed upstream quote fetches",
    labelnames=["kind"],
)

HTTP_REQUESTS = Counter(
    "ltp_http_requests_total",
    "HTTP requests handled",
    labelnames=["method", "path", "status"],
)
HTTP_REQUEST_DURATION = Histogram(
    "ltp_http_request_duration_seconds",
    "HTTP request latency in seconds",
    labelnames=["method", "path"],
)

AUDIT_DROPPED = Counter("ltp_audit_dropped_total", "Audit records dropped because the queue was full")


def render_latest() -> Tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
