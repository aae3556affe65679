"""Schema definitions for alert classification and delivery records.

``PendingDelivery`` maps 1:1 to the ``alert_notifications`` table. One row
exists per (approved alert, active subscriber) and moves through the
delivery lifecycle PENDING -> CLAIMED -> SENT, with CLAIMED -> PENDING on an
explicit release and FAILED once retries are exhausted.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


class Severity(str, enum.Enum):
    """Alert tiers, lowest first. ``NONE`` never produces deliveries."""

    NONE = "NONE"
    CAUTION = "CAUTION"
    WARNING = "WARNING"
    DANGER = "DANGER"
    EMERGENCY = "EMERGENCY"

    @property
    def alert_type(self) -> str:
        """Alert type stored alongside the tier (CAUTION is sent as ALERT)."""
        return "ALERT" if self is Severity.CAUTION else self.value


class DeliveryStatus(enum.IntEnum):
    """Values of ``alert_notifications.delivery_status``."""

    PENDING = 0
    SENT = 1
    CLAIMED = 2
    FAILED = 3


AckResult = Literal["SENT", "SKIPPED"]
ReleaseResult = Literal["RELEASED", "FAILED", "SKIPPED"]
EvaluationOutcome = Literal["no_alert", "suppressed", "enqueued", "failed"]


@dataclass(frozen=True)
class AlertClassification:
    """Result of mapping a smoothed level onto the threshold table.

    Attributes:
        severity: Highest tier whose threshold the level meets.
        alert_type: Stored alert type (``ALERT`` for the CAUTION tier).
        message: Precomposed SMS body.
        level: The smoothed level that was classified.
    """

    severity: Severity
    alert_type: str
    message: str
    level: float


@dataclass
class PendingDelivery:
    """A row from the alert_notifications table.

    Attributes:
        id: Serial primary key; claims take the lowest pending id first.
        subscriber_id: Owning subscriber.
        severity: Tier that produced the alert.
        alert_type: Stored alert type.
        water_level: Smoothed level (cm) at evaluation time.
        message: SMS body.
        delivery_status: Lifecycle state.
        attempt_count: Completed send attempts (success or release).
        created_at: Enqueue time.
        claimed_at: When the current claim was taken, if claimed.
        sent_at: When the delivery was acknowledged as sent.
        error_message: Last failure reason reported on release.
    """

    id: int
    subscriber_id: int
    severity: Severity
    alert_type: str
    water_level: float
    message: str
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    attempt_count: int = 0
    created_at: datetime | None = None
    claimed_at: datetime | None = None
    sent_at: datetime | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "subscriber_id": self.subscriber_id,
            "severity": self.severity.value,
            "alert_type": self.alert_type,
            "water_level": self.water_level,
            "message": self.message,
            "delivery_status": int(self.delivery_status),
            "attempt_count": self.attempt_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "claimed_at": self.claimed_at.isoformat() if self.claimed_at else None,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class ClaimedDelivery:
    """A delivery a poller now exclusively owns, joined with its contact."""

    id: int
    phone_number: str
    message: str
    delivery_status: DeliveryStatus = DeliveryStatus.CLAIMED
    attempt_count: int = 0


@dataclass
class EvaluationResult:
    """Outcome of one ``evaluate_reading`` call.

    Callers on the ingest path ignore it; it exists so failures stay
    visible to logging and tests without raising.
    """

    location_id: str
    raw_value: float
    outcome: EvaluationOutcome
    level: float | None = None
    severity: Severity = Severity.NONE
    enqueued: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != "failed"


@dataclass
class SweepResult:
    """Counts from one stale-claim recovery pass."""

    released: int = 0
    failed: int = 0
    released_ids: list[int] = field(default_factory=list)
    failed_ids: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.released + self.failed
