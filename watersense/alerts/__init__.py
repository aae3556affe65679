"""Alert pipeline and SMS delivery queue.

Components:
- AlertConfig: Pydantic settings for thresholds, cooldowns and smoothing
- AlertService: smoothing -> classification -> cooldown -> enqueue
- SmoothingService: Trailing-window mean with raw-value fallback
- NotificationRepository: SQL over the alert_notifications table
- DeliveryQueue / DeliveryConfig: Claim, acknowledge, release and sweep
- DeliveryWorker: In-process dispatcher sending claimed deliveries
- NotificationChannel / SmsGatewayChannel / CircuitBreaker: Delivery channels
- Severity / DeliveryStatus: Enums for tiers and lifecycle states
"""

from watersense.alerts.channels import (
    CircuitBreaker,
    NotificationChannel,
    SmsGatewayChannel,
)
from watersense.alerts.config import AlertConfig
from watersense.alerts.queue import DeliveryConfig, DeliveryQueue
from watersense.alerts.repository import NotificationRepository
from watersense.alerts.schemas import (
    AlertClassification,
    ClaimedDelivery,
    DeliveryStatus,
    EvaluationResult,
    PendingDelivery,
    Severity,
    SweepResult,
)
from watersense.alerts.service import AlertService
from watersense.alerts.smoothing import SmoothingService
from watersense.alerts.worker import DeliveryWorker

__all__ = [
    "AlertClassification",
    "AlertConfig",
    "AlertService",
    "CircuitBreaker",
    "ClaimedDelivery",
    "DeliveryConfig",
    "DeliveryQueue",
    "DeliveryStatus",
    "DeliveryWorker",
    "EvaluationResult",
    "NotificationChannel",
    "NotificationRepository",
    "PendingDelivery",
    "Severity",
    "SmoothingService",
    "SmsGatewayChannel",
    "SweepResult",
]
