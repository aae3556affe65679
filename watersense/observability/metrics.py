"""
Prometheus metrics for monitoring the alert pipeline.

Defines and exposes metrics for:
- Reading ingestion
- Alert evaluation outcomes
- Delivery enqueue, claim, acknowledgement and recovery

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from watersense.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the watersense pipeline.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_evaluation("enqueued", latency=0.12)
        metrics.record_claim("claimed")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.readings_ingested = Counter(
            "watersense_readings_ingested_total",
            "Total number of sensor readings ingested",
            ["status"],  # dashboard status band
        )

        self.timeseries_errors = Counter(
            "watersense_timeseries_errors_total",
            "Time-series store failures",
            ["operation"],  # write, smooth, latest
        )

        self.alert_evaluations = Counter(
            "watersense_alert_evaluations_total",
            "Alert pipeline runs by outcome",
            ["outcome"],  # no_alert, suppressed, enqueued, failed
        )

        self.evaluation_latency = Histogram(
            "watersense_alert_evaluation_latency_seconds",
            "Time to run the alert pipeline for one reading",
            buckets=LATENCY_BUCKETS,
        )

        self.deliveries_enqueued = Counter(
            "watersense_deliveries_enqueued_total",
            "Pending delivery rows created",
            ["severity"],
        )

        self.delivery_claims = Counter(
            "watersense_delivery_claims_total",
            "Claim attempts by result",
            ["result"],  # claimed, empty, contention, error, disabled
        )

        self.delivery_acks = Counter(
            "watersense_delivery_acks_total",
            "Acknowledgements by result",
            ["result"],  # SENT, SKIPPED, RELEASED, FAILED
        )

        self.stale_claims_swept = Counter(
            "watersense_stale_claims_swept_total",
            "Claimed deliveries recovered by the sweep",
            ["action"],  # released, failed
        )

        logger.info("Prometheus metrics initialized")

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

    def record_reading(self, status: str) -> None:
        self.readings_ingested.labels(status=status).inc()

    def record_timeseries_error(self, operation: str) -> None:
        self.timeseries_errors.labels(operation=operation).inc()

    def record_evaluation(self, outcome: str, latency: float | None = None) -> None:
        """
        Record one alert pipeline run.

        Args:
            outcome: Pipeline outcome label
            latency: Wall-clock duration in seconds
        """
        self.alert_evaluations.labels(outcome=outcome).inc()
        if latency is not None and latency > 0:
            self.evaluation_latency.observe(latency)

    def record_enqueued(self, severity: str, count: int) -> None:
        if count > 0:
            self.deliveries_enqueued.labels(severity=severity).inc(count)

    def record_claim(self, result: str) -> None:
        self.delivery_claims.labels(result=result).inc()

    def record_ack(self, result: str) -> None:
        self.delivery_acks.labels(result=result).inc()

    def record_sweep(self, released: int, failed: int) -> None:
        if released:
            self.stale_claims_swept.labels(action="released").inc(released)
        if failed:
            self.stale_claims_swept.labels(action="failed").inc(failed)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
