"""Stateless functions for severity classification and cooldown lookup.

No I/O, no state. All side effects (smoothing queries, cooldown history,
enqueueing) live in AlertService.
"""

import math

from watersense.alerts.config import AlertConfig
from watersense.alerts.schemas import AlertClassification, Severity

_TITLES = {
    Severity.CAUTION: "Alert",
    Severity.WARNING: "Warning",
    Severity.DANGER: "Danger",
    Severity.EMERGENCY: "Emergency",
}


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves away from zero for positives."""
    return math.floor(value + 0.5)


def threshold_table(config: AlertConfig) -> list[tuple[float, Severity]]:
    """Thresholds ordered highest first, the evaluation order."""
    return [
        (config.emergency_threshold, Severity.EMERGENCY),
        (config.danger_threshold, Severity.DANGER),
        (config.warning_threshold, Severity.WARNING),
        (config.caution_threshold, Severity.CAUTION),
    ]


def severity_for(value: float, config: AlertConfig) -> Severity:
    """
    Map a level onto the threshold table.

    The first threshold met, scanning from the top, wins. A level exactly
    on a boundary belongs to the higher tier.

    Args:
        value: Smoothed water level in cm.
        config: Alert configuration with thresholds.

    Returns:
        The matching tier, or ``Severity.NONE`` below the lowest threshold.
    """
    for threshold, severity in threshold_table(config):
        if value >= threshold:
            return severity
    return Severity.NONE


def format_message(severity: Severity, value: float, brand: str = "WaterSense") -> str:
    """Compose the SMS body for a tier."""
    level = f"{value:g}"
    message = f"{brand}: {_TITLES[severity]}\nWater level is {level} cm."
    if severity is Severity.EMERGENCY:
        message += "\nEVACUATE IMMEDIATELY."
    return message


def classify_level(value: float, config: AlertConfig) -> AlertClassification | None:
    """
    Classify a smoothed level into an alert.

    Args:
        value: Smoothed water level in cm.
        config: Alert configuration with thresholds and branding.

    Returns:
        AlertClassification, or None when no tier applies.
    """
    severity = severity_for(value, config)
    if severity is Severity.NONE:
        return None

    return AlertClassification(
        severity=severity,
        alert_type=severity.alert_type,
        message=format_message(severity, value, config.brand),
        level=value,
    )


def cooldown_for(severity: Severity, config: AlertConfig) -> int:
    """Cooldown window in seconds for a tier."""
    if severity is Severity.EMERGENCY:
        return config.emergency_cooldown_seconds
    return config.default_cooldown_seconds
