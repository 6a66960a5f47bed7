"""Observability layer - logging and metrics."""

from chat_backend.observability.logging import setup_logging
from chat_backend.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
