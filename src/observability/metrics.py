"""
Prometheus metrics for monitoring the restroom tracker.

Defines and exposes metrics for:
- Rating submissions and rejections
- Cleaning task transitions and start conflicts
- Storage latency
- HTTP request latency

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the restroom tracker.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.ratings_submitted.labels(has_problems="true").inc()
        metrics.task_transitions.labels(to_status="in_progress").inc()
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Rating ingestion
        self.ratings_submitted = Counter(
            "restroom_tracker_ratings_submitted_total",
            "Total ratings accepted",
            ["has_problems"],
        )

        self.ratings_rejected = Counter(
            "restroom_tracker_ratings_rejected_total",
            "Total rating submissions rejected",
            ["reason"],  # validation, not_found
        )

        # Cleaning task lifecycle
        self.task_transitions = Counter(
            "restroom_tracker_task_transitions_total",
            "Cleaning task state transitions",
            ["to_status"],  # assigned, in_progress, completed
        )

        self.task_rejections = Counter(
            "restroom_tracker_task_rejections_total",
            "Cleaning task operations rejected",
            ["operation", "reason"],  # reason: conflict, forbidden, invalid_state, not_found
        )

        self.cleaning_duration = Histogram(
            "restroom_tracker_cleaning_duration_minutes",
            "Time from begin to complete of a cleaning task",
            buckets=(1, 2, 5, 10, 15, 20, 30, 45, 60, 120),
        )

        # Status aggregation
        self.toilets_with_problems = Gauge(
            "restroom_tracker_toilets_with_problems",
            "Active toilets whose latest rating reports unresolved problems",
        )

        # Latency
        self.storage_latency = Histogram(
            "restroom_tracker_storage_latency_seconds",
            "Time spent in store reads and writes",
            ["operation"],
            buckets=LATENCY_BUCKETS,
        )

        self.request_latency = Histogram(
            "restroom_tracker_request_latency_seconds",
            "HTTP request latency",
            ["method", "status_code"],
            buckets=LATENCY_BUCKETS,
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_rating(self, has_problems: bool) -> None:
        """Record an accepted rating."""
        self.ratings_submitted.labels(has_problems=str(has_problems).lower()).inc()

    def record_rating_rejected(self, reason: str) -> None:
        """Record a rejected rating submission (validation, not_found)."""
        self.ratings_rejected.labels(reason=reason).inc()

    def record_transition(self, to_status: str) -> None:
        """Record a task entering ``to_status``."""
        self.task_transitions.labels(to_status=to_status).inc()

    def record_task_rejection(self, operation: str, reason: str) -> None:
        """
        Record a rejected lifecycle operation.

        Args:
            operation: start, begin or complete
            reason: Error kind (conflict, forbidden, invalid_state, not_found)
        """
        self.task_rejections.labels(operation=operation, reason=reason).inc()

    def record_cleaning_duration(self, minutes: float | None) -> None:
        """Observe a completed task's duration, if it has one."""
        if minutes is not None:
            self.cleaning_duration.observe(minutes)

    def set_toilets_with_problems(self, count: int) -> None:
        self.toilets_with_problems.set(count)

    def record_storage_latency(self, operation: str, latency: float) -> None:
        self.storage_latency.labels(operation=operation).observe(latency)

    def record_request(self, method: str, status_code: int, latency: float) -> None:
        self.request_latency.labels(
            method=method, status_code=str(status_code)
        ).observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
