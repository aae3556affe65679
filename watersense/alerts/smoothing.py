"""Best-effort smoothing of raw readings against the time-series store.

Every reading is replaced by the mean of the trailing window before
classification. An empty window, a null aggregate, a timeout or any query
error falls back to the raw value unchanged.
"""

import asyncio
import logging

from watersense.alerts.config import AlertConfig
from watersense.alerts.triggers import round_half_up
from watersense.observability.metrics import get_metrics
from watersense.timeseries.store import WaterLevelStore

logger = logging.getLogger(__name__)


class SmoothingService:
    """Reduces a location's trailing window to one representative level."""

    def __init__(self, store: WaterLevelStore, config: AlertConfig) -> None:
        self._store = store
        self._config = config

    async def smooth(self, location_id: str, raw_value: float) -> float:
        """
        Smoothed level for a location, rounded to a whole cm.

        Args:
            location_id: Location whose window is averaged.
            raw_value: The reading that triggered evaluation.

        Returns:
            Rounded window mean, or ``raw_value`` unchanged on any failure.
        """
        try:
            mean = await asyncio.wait_for(
                self._store.mean_level(
                    location_id, window_minutes=self._config.smoothing_window_minutes,
                ),
                timeout=self._config.smoothing_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Smoothing query timed out for location %s, using raw value %s",
                location_id, raw_value,
            )
            get_metrics().record_timeseries_error("smooth")
            return raw_value
        except Exception as e:
            logger.warning(
                "Smoothing query failed for location %s, using raw value %s: %s",
                location_id, raw_value, e,
            )
            get_metrics().record_timeseries_error("smooth")
            return raw_value

        if mean is None:
            logger.debug("No samples in window for location %s", location_id)
            return raw_value

        return float(round_half_up(mean))
