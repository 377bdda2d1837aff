"""Prometheus metrics for proxy observability."""

import os
import time

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# === Counters ===

HTTP_REQUESTS_TOTAL = Counter(
    "tmdbproxy_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

CACHE_LOOKUPS_TOTAL = Counter(
    "tmdbproxy_cache_lookups_total",
    "Cache lookups by result",
    ["result"],  # result: hit, miss
)

CACHE_EVICTIONS_TOTAL = Counter(
    "tmdbproxy_cache_evictions_total",
    "Cache entries evicted",
    ["reason"],  # reason: expired, overflow
)

UPSTREAM_REQUESTS_TOTAL = Counter(
    "tmdbproxy_upstream_requests_total",
    "Upstream requests by outcome",
    ["outcome"],  # outcome: ok, relayed, error
)

# === Histograms ===

HTTP_REQUEST_LATENCY = Histogram(
    "tmdbproxy_http_request_latency_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

UPSTREAM_LATENCY = Histogram(
    "tmdbproxy_upstream_latency_seconds",
    "Upstream request latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# === Gauges ===

CACHE_ENTRIES = Gauge(
    "tmdbproxy_cache_entries",
    "Number of entries currently in the cache",
)


# === Helper Functions ===


def record_cache_lookup(hit: bool) -> None:
    """Record a cache hit or miss."""
    CACHE_LOOKUPS_TOTAL.labels(result="hit" if hit else "miss").inc()


def record_evictions(reason: str, count: int) -> None:
    """Record evicted entries."""
    if count > 0:
        CACHE_EVICTIONS_TOTAL.labels(reason=reason).inc(count)


def record_upstream_request(outcome: str, latency: float) -> None:
    """Record an upstream request with latency."""
    UPSTREAM_REQUESTS_TOTAL.labels(outcome=outcome).inc()
    UPSTREAM_LATENCY.observe(latency)


def record_http_request(
    method: str,
    endpoint: str,
    status: int,
    latency: float,
) -> None:
    """Record an HTTP request."""
    HTTP_REQUESTS_TOTAL.labels(
        method=method,
        endpoint=endpoint,
        status=str(status),
    ).inc()
    HTTP_REQUEST_LATENCY.labels(
        method=method,
        endpoint=endpoint,
    ).observe(latency)


def update_cache_entries(count: int) -> None:
    """Update cache size gauge."""
    CACHE_ENTRIES.set(count)


def endpoint_label(path: str) -> str:
    """Reduce a request path to its first segment to bound label cardinality."""
    segment = path.lstrip("/").split("/", 1)[0]
    return f"/{segment}" if segment else "/"


# === HTTP Endpoint ===


class MetricsMiddleware(BaseHTTPMiddleware):
    """HTTP request metrics middleware."""

    def __init__(self, app: ASGIApp, exclude_paths: list[str] | None = None) -> None:
        super().__init__(app)
        self._exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exclude_paths:
            return await call_next(request)

        endpoint = endpoint_label(request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            record_http_request(
                method=request.method,
                endpoint=endpoint,
                status=500,
                latency=duration,
            )
            raise

        duration = time.perf_counter() - start
        record_http_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            latency=duration,
        )
        return response


async def metrics_endpoint(_request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if multiproc_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)  # type: ignore[no-untyped-call]
        return Response(
            generate_latest(registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return Response(
        generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
