"""Storage layer for subscribers, deliveries and calibration."""

from watersense.storage.database import Database, affected_rows
from watersense.storage.schema import create_tables

__all__ = ["Database", "affected_rows", "create_tables"]
