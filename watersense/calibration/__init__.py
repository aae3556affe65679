"""Per-sensor calibration storage."""

from watersense.calibration.repository import Calibration, CalibrationRepository

__all__ = ["Calibration", "CalibrationRepository"]
