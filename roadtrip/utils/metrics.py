"""Prometheus metrics for provider calls and planning."""

from prometheus_client import Counter, Histogram

provider_latency_ms = Histogram(
    "provider_latency_ms",
    "External provider call latency in milliseconds",
    ["provider", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)

provider_errors_total = Counter(
    "provider_errors_total",
    "Total external provider call errors",
    ["provider", "reason"],
)

segment_estimates_total = Counter(
    "segment_estimates_total",
    "Route segments that fell back to a straight-line estimate",
)

catalog_cache_hits_total = Counter(
    "catalog_cache_hits_total",
    "City catalog requests served from the in-process cache",
)


class PrometheusToolMetrics:
    """Prometheus-based provider call metrics implementation."""

    def record_latency(self, tool: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        provider_latency_ms.labels(provider=tool, outcome=outcome).observe(latency_ms)

    def inc_error(self, tool: str, reason: str) -> None:
        """Increment error counter."""
        provider_errors_total.labels(provider=tool, reason=reason).inc()
