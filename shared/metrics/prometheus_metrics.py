"""Prometheus metrics definitions and helpers.

Provides HTTP and domain metrics for the shop API. Each application
instance owns its registry so several apps can coexist in one process.
"""

from typing import Callable, Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class HTTPMetrics:
    """HTTP request metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use (a fresh one if omitted)
        """
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=self.registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=self.registry,
        )

        # Domain events
        self.users_registered = Counter(
            "shop_users_registered_total",
            "Total number of registered users",
            registry=self.registry,
        )

        self.orders_placed = Counter(
            "shop_orders_placed_total",
            "Total number of orders placed",
            registry=self.registry,
        )

        self.images_uploaded = Counter(
            "shop_product_images_uploaded_total",
            "Total number of product images stored",
            registry=self.registry,
        )

        self.login_failures = Counter(
            "shop_login_failures_total",
            "Total number of rejected logins",
            registry=self.registry,
        )


def get_metrics_handler(metrics: HTTPMetrics) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        metrics: Metrics bundle whose registry is exported

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(metrics.registry)

    return metrics_handler
