"""
Shared metrics configuration for the Access Layer services.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry unless one is supplied, so several
    service instances (as in tests) never collide on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        # Service-specific metrics
        if self.service_name == "permissions":
            self._setup_permissions_metrics()

    def _setup_permissions_metrics(self):
        """Set up permission-service metrics."""
        self._metrics["permission_checks_total"] = Counter(
            "permission_checks_total",
            "Total permission checks",
            ["decision"],
            registry=self.registry
        )

        self._metrics["permission_check_duration_seconds"] = Histogram(
            "permission_check_duration_seconds",
            "Permission check duration in seconds",
            registry=self.registry
        )

        self._metrics["catalog_reloads_total"] = Counter(
            "catalog_reloads_total",
            "Total catalog snapshot replacements",
            ["status"],
            registry=self.registry
        )

        self._metrics["catalog_entities"] = Gauge(
            "catalog_entities",
            "Entities in the active catalog snapshot",
            ["kind"],
            registry=self.registry
        )

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_permission_check(self, allowed: bool, duration: float):
        """Record a permission decision and its latency."""
        self.increment_counter("permission_checks_total", decision="allow" if allowed else "deny")
        if "permission_check_duration_seconds" in self._metrics:
            self._metrics["permission_check_duration_seconds"].observe(duration)

    def record_catalog_reload(self, status: str, counts: Optional[Dict[str, int]] = None):
        """Record a catalog swap attempt and, on success, the new entity counts."""
        self.increment_counter("catalog_reloads_total", status=status)
        for kind, count in (counts or {}).items():
            self.set_gauge("catalog_entities", count, kind=kind)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
