"""Prometheus metrics for the backend API.

All series live in a dedicated CollectorRegistry owned by RequestMetrics,
so the pull endpoint only exposes what this service declares and tests can
build isolated instances.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REQUEST_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)


class RequestMetrics:
    """Request counter, latency histogram and row-count gauge."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            "api_requests_total",
            "Total number of API requests",
            labelnames=("method", "route", "status_code"),
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "api_request_duration_seconds",
            "API request duration in seconds",
            labelnames=("method", "route"),
            buckets=REQUEST_LATENCY_BUCKETS,
            registry=self.registry,
        )

        self.items_total = Gauge(
            "db_items_total",
            "Total number of items currently in the database",
            registry=self.registry,
        )

    def record_request(
        self, method: str, route: str, status_code: int, duration_seconds: float
    ) -> None:
        """Record one completed HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            route: Route template, or raw path when no route matched
            status_code: Response status code
            duration_seconds: Request duration in seconds
        """
        self.requests_total.labels(
            method=method, route=route, status_code=str(status_code)
        ).inc()
        self.request_duration.labels(method=method, route=route).observe(
            max(duration_seconds, 0.0)
        )

    def set_item_count(self, count: int) -> None:
        """Update the row-count gauge with the latest observed value."""
        self.items_total.set(count)

    def render(self) -> tuple[bytes, str]:
        """Snapshot the registry in Prometheus text exposition format."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
