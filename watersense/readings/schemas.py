"""Schema definitions for sensor readings."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from watersense.readings.config import ReadingConfig

ReadingStatus = Literal["Normal", "Caution", "Warning", "Danger"]


def clamp_level(value: float, config: ReadingConfig) -> float:
    """Clamp a raw level into the configured sensor range.

    Raises:
        ValueError: If the level is NaN or infinite.
    """
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Water level must be a finite number, got {value}")
    return max(config.min_level_cm, min(config.max_level_cm, value))


def status_band(value: float, config: ReadingConfig) -> ReadingStatus:
    """Dashboard status for a clamped level.

    These bands only label stored points; alerting uses the separate
    threshold table in AlertConfig.
    """
    if value >= config.danger_band_cm:
        return "Danger"
    if value >= config.warning_band_cm:
        return "Warning"
    if value >= config.caution_band_cm:
        return "Caution"
    return "Normal"


@dataclass
class Reading:
    """One accepted sensor reading after clamping.

    Attributes:
        location_id: Sensor node / location identifier.
        water_level_cm: Clamped level in cm.
        status: Dashboard status band.
        battery: Battery percentage reported by the node.
        received_at: Server receive time.
    """

    location_id: str
    water_level_cm: float
    status: ReadingStatus
    battery: int = 0
    received_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "location_id": self.location_id,
            "water_level_cm": self.water_level_cm,
            "status": self.status,
            "battery": self.battery,
            "received_at": self.received_at.isoformat(),
        }
