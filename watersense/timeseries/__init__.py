"""Time-series access for raw water-level readings (InfluxDB 2.x)."""

from watersense.timeseries.store import MEASUREMENT, WaterLevelStore

__all__ = ["MEASUREMENT", "WaterLevelStore"]
