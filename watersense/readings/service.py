"""Reading ingestion: clamp, store, then run the alert pipeline.

Neither a failed time-series write nor a failed evaluation reaches the
caller; the sensor node always gets its acknowledgement.
"""

import logging

from watersense.alerts.schemas import EvaluationResult
from watersense.alerts.service import AlertService
from watersense.observability.metrics import get_metrics
from watersense.readings.config import ReadingConfig
from watersense.readings.schemas import Reading, clamp_level, status_band
from watersense.timeseries.store import WaterLevelStore

logger = logging.getLogger(__name__)


class ReadingService:
    """Accepts readings from sensor nodes."""

    def __init__(
        self,
        store: WaterLevelStore,
        alert_service: AlertService,
        config: ReadingConfig | None = None,
    ) -> None:
        self._store = store
        self._alert_service = alert_service
        self._config = config or ReadingConfig()

    async def ingest(
        self,
        location_id: str,
        water_level: float,
        battery: int | None = None,
    ) -> Reading:
        """
        Accept one reading.

        Args:
            location_id: Sensor node / location identifier.
            water_level: Raw level in cm.
            battery: Battery percentage, if reported.

        Returns:
            The stored Reading (clamped level and status band).
        """
        level = clamp_level(water_level, self._config)
        reading = Reading(
            location_id=str(location_id),
            water_level_cm=level,
            status=status_band(level, self._config),
            battery=battery or 0,
        )

        try:
            await self._store.write_reading(
                reading.location_id,
                reading.water_level_cm,
                battery=reading.battery,
                status=reading.status,
                observed_at=reading.received_at,
            )
        except Exception as e:
            logger.error(
                "Time-series write failed for location %s: %s", reading.location_id, e,
            )
            get_metrics().record_timeseries_error("write")

        get_metrics().record_reading(reading.status)

        result: EvaluationResult = await self._alert_service.evaluate_reading(
            reading.location_id, reading.water_level_cm,
        )
        if not result.ok:
            logger.error(
                "Alert evaluation failed for location %s: %s",
                reading.location_id, result.error,
            )

        return reading
