"""Database repository for per-sensor calibration (sensorsetting table)."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from watersense.storage.database import Database

logger = logging.getLogger(__name__)

_UPSERT_SQL = """
INSERT INTO sensorsetting (sensorid, calib_offset, calib_scale, updated_at)
VALUES ($1, $2, 1, NOW())
ON CONFLICT (sensorid) DO UPDATE SET
    calib_offset = EXCLUDED.calib_offset,
    calib_scale = 1,
    updated_at = NOW()
RETURNING sensorid, calib_offset, calib_scale, updated_at
"""


@dataclass
class Calibration:
    """Offset (and fixed unit scale) applied to one sensor's readings."""

    sensorid: int
    calib_offset: float = 0.0
    calib_scale: float = 1.0
    updated_at: datetime | None = None

    def apply(self, raw_value: float) -> float:
        return raw_value * self.calib_scale + self.calib_offset

    def to_dict(self) -> dict[str, Any]:
        return {
            "sensorid": self.sensorid,
            "calib_offset": self.calib_offset,
            "calib_scale": self.calib_scale,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def _record_to_calibration(record) -> Calibration:
    return Calibration(
        sensorid=record["sensorid"],
        calib_offset=record["calib_offset"],
        calib_scale=record["calib_scale"],
        updated_at=record["updated_at"],
    )


class CalibrationRepository:
    """Read and upsert sensor calibration rows."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, sensorid: int) -> Calibration | None:
        row = await self._db.fetchrow(
            """
            SELECT sensorid, calib_offset, calib_scale, updated_at
            FROM sensorsetting
            WHERE sensorid = $1
            """,
            sensorid,
        )
        if row is None:
            return None
        return _record_to_calibration(row)

    async def save(self, sensorid: int, offset: float) -> Calibration:
        """
        Store a sensor's offset, resetting its scale to 1.

        Args:
            sensorid: Sensor / location identifier.
            offset: Additive correction in cm.

        Returns:
            The stored calibration.
        """
        row = await self._db.fetchrow(_UPSERT_SQL, sensorid, float(offset))
        logger.info("Calibration saved for sensor %s: offset %s", sensorid, offset)
        return _record_to_calibration(row)
