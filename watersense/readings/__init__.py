"""Sensor reading ingestion."""

from watersense.readings.config import ReadingConfig
from watersense.readings.schemas import Reading, clamp_level, status_band
from watersense.readings.service import ReadingService

__all__ = ["Reading", "ReadingConfig", "ReadingService", "clamp_level", "status_band"]
