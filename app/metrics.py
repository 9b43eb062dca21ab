"""
Prometheus metrics for the submission service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
import psutil
import os


class Metrics:
    """
    Centralized metrics for the submission service.
    """

    def __init__(self, service_name: str = "bestie", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            ["service"],
            registry=self.registry,
        )
        self.http_requests_active.labels(service=service_name).set(0)

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Business Metrics
        self.submissions_total = Counter(
            "bestie_submissions_total",
            "Form submissions by kind and outcome",
            ["kind", "status"],
            registry=self.registry,
        )

        self.sink_deliveries_total = Counter(
            "bestie_sink_deliveries_total",
            "Sink delivery attempts by sink and result",
            ["sink", "result"],
            registry=self.registry,
        )

        self.sink_duration = Histogram(
            "bestie_sink_duration_seconds",
            "Time for a sink delivery attempt to settle",
            ["sink"],
            registry=self.registry,
        )

        # System Metrics
        self.process_memory_bytes = Gauge(
            "process_resident_memory_bytes",
            "Resident memory size in bytes",
            ["service"],
            registry=self.registry,
        )
        self.update_system_metrics()

    def update_system_metrics(self):
        """Update system metrics from psutil."""
        try:
            memory_info = psutil.Process(os.getpid()).memory_info()
        except psutil.Error:
            return
        self.process_memory_bytes.labels(service=self.service_name).set(memory_info.rss)

    def record_submission(self, kind: str, status: str):
        """Record a submission outcome ("accepted", "rejected" or "error")."""
        self.submissions_total.labels(kind=kind, status=status).inc()

    def record_sink_result(self, sink: str, ok: bool, elapsed_ms: float):
        """Record a settled sink delivery."""
        self.sink_deliveries_total.labels(sink=sink, result="ok" if ok else "failed").inc()
        self.sink_duration.labels(sink=sink).observe(elapsed_ms / 1000)
