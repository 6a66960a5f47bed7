"""
Prometheus metrics for monitoring the chat backend.

Defines and exposes metrics for:
- User registrations
- Chat and feedback persistence
- Storage latency and errors
- Realtime connections and liveness terminations

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

from chat_backend.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)


class MetricsCollector:
    """
    Prometheus metrics collector for the chat backend.

    Usage:
        metrics = get_metrics()
        metrics.record_chat_saved(channel="rest")
        metrics.storage_latency.labels(operation="append_chat").observe(0.004)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.users_registered = Counter(
            "chat_backend_users_registered_total",
            "Registration requests by outcome",
            ["outcome"],  # created, existing
        )

        self.chats_saved = Counter(
            "chat_backend_chats_saved_total",
            "Chat entries persisted",
            ["channel"],  # rest, realtime
        )

        self.chats_cleared = Counter(
            "chat_backend_chats_cleared_total",
            "Chat entries removed by history clears",
        )

        self.feedback_submitted = Counter(
            "chat_backend_feedback_submitted_total",
            "Feedback entries persisted",
            ["rating"],
        )

        self.storage_errors = Counter(
            "chat_backend_storage_errors_total",
            "Storage failures",
            ["operation"],
        )

        self.storage_latency = Histogram(
            "chat_backend_storage_latency_seconds",
            "Time spent in repository operations",
            ["operation"],
            buckets=LATENCY_BUCKETS,
        )

        self.realtime_connections = Gauge(
            "chat_backend_realtime_connections",
            "Currently open realtime connections",
        )

        self.realtime_frames = Counter(
            "chat_backend_realtime_frames_total",
            "Realtime frames received",
            ["frame_type"],  # chat, get_chat_history, pong, ping, unknown, malformed
        )

        self.liveness_terminations = Counter(
            "chat_backend_liveness_terminations_total",
            "Realtime connections closed by the liveness probe",
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

    def record_registration(self, created: bool) -> None:
        """Record a registration request."""
        self.users_registered.labels(outcome="created" if created else "existing").inc()

    def record_chat_saved(self, channel: str) -> None:
        """Record a persisted chat entry for the given channel (rest, realtime)."""
        self.chats_saved.labels(channel=channel).inc()

    def record_chats_cleared(self, count: int) -> None:
        self.chats_cleared.inc(count)

    def record_feedback(self, rating: int) -> None:
        self.feedback_submitted.labels(rating=str(rating)).inc()

    def record_storage_error(self, operation: str) -> None:
        self.storage_errors.labels(operation=operation).inc()

    def record_storage_latency(self, operation: str, latency: float) -> None:
        """
        Record repository operation latency.

        Args:
            operation: Repository operation name
            latency: Latency in seconds
        """
        self.storage_latency.labels(operation=operation).observe(latency)

    def record_frame(self, frame_type: str) -> None:
        self.realtime_frames.labels(frame_type=frame_type).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
