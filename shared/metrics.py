"""
Shared metrics configuration for DayOrg services.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry so several service instances can live in
    one process (tests build a fresh service per case).
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
            "service",
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
            ["method", "path", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests.",
            ["path"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type"],
            registry=self.registry
        )

        # Business metrics
        self._metrics["business_events_total"] = Counter(
            "business_events_total",
            "Total business events",
            ["event_type"],
            registry=self.registry
        )

        # Service-specific metrics
        if self.service_name == "tasks":
            self._setup_tasks_metrics()

    def _setup_tasks_metrics(self):
        """Set up tasks-specific metrics."""
        self._metrics["active_tasks"] = Gauge(
            "dayorg_active_tasks_count",
            "The total number of active tasks in the database",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def render(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, path: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            path=path,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            path=path
        ).observe(duration)

    def record_error(self, error_type: str):
        """Record error metrics."""
        self._metrics["errors_total"].labels(error_type=error_type).inc()

    def record_business_event(self, event_type: str):
        """Record business event metrics."""
        self._metrics["business_events_total"].labels(event_type=event_type).inc()

    def increment_gauge(self, metric_name: str, amount: float = 1):
        """Increment an unlabelled gauge."""
        if metric_name in self._metrics:
            self._metrics[metric_name].inc(amount)

    def decrement_gauge(self, metric_name: str, amount: float = 1):
        """Decrement an unlabelled gauge."""
        if metric_name in self._metrics:
            self._metrics[metric_name].dec(amount)

    def set_gauge(self, metric_name: str, value: float):
        """Set an unlabelled gauge."""
        if metric_name in self._metrics:
            self._metrics[metric_name].set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
