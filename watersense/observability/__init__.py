"""Observability layer - logging and metrics."""

from watersense.observability.logging import setup_logging
from watersense.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
