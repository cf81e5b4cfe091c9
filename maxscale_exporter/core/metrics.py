"""
Prometheus metrics about the exporter itself.

Metrics collected:
- Upstream request count by resource kind and status code (counter)
- Upstream failures by resource kind and reason (counter)
- Upstream request duration (histogram)
- Scrapes served (counter)

Bound to the exporter's own CollectorRegistry rather than the process-wide
default so that each application instance owns an independent set.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, Info

# Reasons recorded on maxscale_exporter_upstream_errors_total
REASON_UNAVAILABLE = "unavailable"
REASON_DECODE = "decode"


class ExporterMetrics:
    """Self-monitoring instruments registered on a given registry."""

    def __init__(self, registry: CollectorRegistry, version: str = "unknown"):
        self.info = Info(
            "maxscale_exporter_build",
            "MaxScale exporter build information",
            registry=registry,
        )
        self.info.info({"version": version})

        self.upstream_requests_total = Counter(
            "maxscale_exporter_upstream_requests_total",
            "Total requests sent to the MaxScale REST API",
            ["resource", "status_code"],
            registry=registry,
        )

        self.upstream_errors_total = Counter(
            "maxscale_exporter_upstream_errors_total",
            "Upstream fetches that produced no samples",
            ["resource", "reason"],
            registry=registry,
        )

        self.upstream_request_duration_seconds = Histogram(
            "maxscale_exporter_upstream_request_duration_seconds",
            "MaxScale REST API request duration in seconds",
            ["resource"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=registry,
        )

        self.scrapes_total = Counter(
            "maxscale_exporter_scrapes_total",
            "Total scrapes of the metrics endpoint",
            registry=registry,
        )

    def observe_request(self, resource: str, status_code: int, duration: float) -> None:
        """Record one completed upstream request."""
        self.upstream_requests_total.labels(
            resource=resource,
            status_code=str(status_code),
        ).inc()
        self.upstream_request_duration_seconds.labels(resource=resource).observe(duration)

    def record_error(self, resource: str, reason: str) -> None:
        """Record a fetch or decode failure for one resource kind."""
        self.upstream_errors_total.labels(resource=resource, reason=reason).inc()
