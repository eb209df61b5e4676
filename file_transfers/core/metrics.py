"""Prometheus metrics collection for the transfer service.

This module defines and manages Prometheus metrics for monitoring
request rates, transfer launches, transfer outcomes and record growth.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("file_transfers_app", "File transfer service application information")

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 120.0, 600.0],
)

# Transfer metrics
transfers_requested_total = Counter(
    "transfers_requested_total",
    "Total transfer requests by kind and whether they launched a job",
    ["kind", "launched"],
)

transfers_total = Counter(
    "transfers_total",
    "Total finished transfer jobs by kind and final status",
    ["kind", "status"],
)

transfer_duration_seconds = Histogram(
    "transfer_duration_seconds",
    "porklock run time in seconds",
    ["kind"],
    buckets=[1.0, 10.0, 30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0, 7200.0],
)

transfers_running = Gauge(
    "transfers_running",
    "Whether a transfer of the given kind is currently running (0 or 1)",
    ["kind"],
)

transfer_records = Gauge(
    "transfer_records",
    "Number of transfer records held in memory",
    ["kind"],
)


class MetricsCollector:
    """Centralized metrics collection and update helper.

    Provides static methods for recording various metrics throughout
    the application in a consistent manner.
    """

    @staticmethod
    def record_request(
        method: str,
        endpoint: str,
        status: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics.

        Args:
            method: HTTP method (GET, POST, etc.).
            endpoint: Normalized endpoint path.
            status: HTTP response status code.
            duration: Request duration in seconds.
        """
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    @staticmethod
    def record_transfer_requested(kind: str, launched: bool, record_count: int) -> None:
        """Record an incoming transfer request.

        Args:
            kind: Transfer kind ('upload' or 'download').
            launched: Whether the request started a new porklock process.
            record_count: Records now held for this kind.
        """
        transfers_requested_total.labels(kind=kind, launched=str(launched).lower()).inc()
        transfer_records.labels(kind=kind).set(record_count)

    @staticmethod
    def record_transfer_started(kind: str) -> None:
        transfers_running.labels(kind=kind).set(1)

    @staticmethod
    def record_transfer_finished(kind: str, status: str, duration: float) -> None:
        """Record the outcome of a transfer job.

        Args:
            kind: Transfer kind.
            status: Final record status ('completed' or 'failed').
            duration: Seconds between job start and finish.
        """
        transfers_total.labels(kind=kind, status=status).inc()
        transfer_duration_seconds.labels(kind=kind).observe(duration)
        transfers_running.labels(kind=kind).set(0)


def initialize_metrics(version: str) -> None:
    """Initialize application metrics with version information.

    Should be called during application startup.

    Args:
        version: Application version string.
    """
    app_info.info({"version": version})
