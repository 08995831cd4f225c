"""
Prometheus metrics for the heatmap service.

Instruments are registered on a registry owned by each HeatmapMetrics
instance, so every app (and every test) counts independently. Exposure is
opt-in: the CLI serves the registry on its own port when metrics are enabled.

Exported series:
    heatmap_http_requests_total
    heatmap_http_requests_errors_total{error}
    heatmap_http_request_duration_seconds{status}
    heatmap_user_requests_total{user_id}
    heatmap_cache_hits_total{cache}, heatmap_cache_misses_total{cache}
    heatmap_upstream_errors_total{type}
    heatmap_upstream_request_duration_seconds
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger("spanheat.metrics")


class HeatmapMetrics:
    """Counters and histograms for requests, caches and the upstream API."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.requests = Counter(
            "heatmap_http_requests_total",
            "Heatmap requests received",
            registry=self.registry,
        )
        self.request_errors = Counter(
            "heatmap_http_requests_errors_total",
            "Heatmap requests that failed, by error kind",
            ["error"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "heatmap_http_request_duration_seconds",
            "Heatmap request latency, by response status",
            ["status"],
            registry=self.registry,
        )
        self.user_requests = Counter(
            "heatmap_user_requests_total",
            "Heatmap requests per user id",
            ["user_id"],
            registry=self.registry,
        )
        self.cache_hits = Counter(
            "heatmap_cache_hits_total",
            "Cache lookups that returned a live entry",
            ["cache"],
            registry=self.registry,
        )
        self.cache_misses = Counter(
            "heatmap_cache_misses_total",
            "Cache lookups that found nothing live",
            ["cache"],
            registry=self.registry,
        )
        self.upstream_errors = Counter(
            "heatmap_upstream_errors_total",
            "Failed spans API calls, by failure type",
            ["type"],
            registry=self.registry,
        )
        self.upstream_duration = Histogram(
            "heatmap_upstream_request_duration_seconds",
            "Latency of successful spans API calls",
            registry=self.registry,
        )

    def cache_lookup(self, cache: str, hit: bool) -> None:
        if hit:
            self.cache_hits.labels(cache=cache).inc()
        else:
            self.cache_misses.labels(cache=cache).inc()

    def request_finished(self, status: int, elapsed: float, error: Optional[str] = None) -> None:
        """Record one handled request; error is the failure kind, if any."""
        if error is not None:
            self.request_errors.labels(error=error).inc()
        self.request_duration.labels(status=str(status)).observe(elapsed)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose /metrics on a separate HTTP port."""
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info("Prometheus metrics available at http://localhost:%d/metrics", port)
