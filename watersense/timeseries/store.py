"""InfluxDB access for water-level readings.

Readings are stored as measurement ``water_level`` tagged by
``location_id`` with fields ``value`` (cm), ``battery`` and ``status``.
The store owns one ``InfluxDBClientAsync``; queries take the location as
a Flux parameter rather than interpolating it into the query text.
"""

import logging
from datetime import datetime, timezone
from types import TracebackType

from influxdb_client import Point
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from watersense.config.settings import get_settings

logger = logging.getLogger(__name__)

MEASUREMENT = "water_level"

_MEAN_QUERY = """
from(bucket: "{bucket}")
  |> range(start: -{window}m)
  |> filter(fn: (r) =>
    r._measurement == "{measurement}" and
    r.location_id == params.location_id and
    r._field == "value"
  )
  |> mean()
"""

_LATEST_QUERY = """
from(bucket: "{bucket}")
  |> range(start: -{window}m)
  |> filter(fn: (r) =>
    r._measurement == "{measurement}" and
    r.location_id == params.location_id and
    r._field == "value"
  )
  |> last()
"""


class WaterLevelStore:
    """
    Read/write gateway to the time-series bucket.

    Usage:
        async with WaterLevelStore() as store:
            await store.write_reading("3", 42.5, battery=87, status="Caution")
            mean = await store.mean_level("3", window_minutes=5)
    """

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        org: str | None = None,
        bucket: str | None = None,
        timeout_ms: int | None = None,
        client: InfluxDBClientAsync | None = None,
    ):
        settings = get_settings()
        self._url = url or settings.influx_url
        self._token = token or settings.influx_token or ""
        self._org = org or settings.influx_org
        self._bucket = bucket or settings.influx_bucket
        self._timeout_ms = timeout_ms or settings.influx_timeout_ms
        self._client = client

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def client(self) -> InfluxDBClientAsync:
        """Get the Influx client, creating it on first use."""
        if self._client is None:
            self._client = InfluxDBClientAsync(
                url=self._url,
                token=self._token,
                org=self._org,
                timeout=self._timeout_ms,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("InfluxDB client closed")

    async def __aenter__(self) -> "WaterLevelStore":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def write_reading(
        self,
        location_id: str,
        value: float,
        battery: int = 0,
        status: str = "Normal",
        observed_at: datetime | None = None,
    ) -> None:
        """
        Write one reading point.

        Args:
            location_id: Sensor node / location identifier (tag)
            value: Water level in cm
            battery: Battery percentage reported by the node
            status: Dashboard status band for the reading
            observed_at: Point timestamp (now if omitted)
        """
        point = (
            Point(MEASUREMENT)
            .tag("location_id", str(location_id))
            .field("value", float(value))
            .field("battery", int(battery))
            .field("status", status)
            .time(observed_at or datetime.now(timezone.utc))
        )
        await self.client.write_api().write(bucket=self._bucket, record=point)

    async def mean_level(self, location_id: str, window_minutes: int = 5) -> float | None:
        """
        Mean ``value`` over the whole trailing window.

        Returns:
            The mean in cm, or None if the window holds no samples.
        """
        query = _MEAN_QUERY.format(
            bucket=self._bucket, window=int(window_minutes), measurement=MEASUREMENT,
        )
        return await self._first_value(query, location_id)

    async def latest_level(self, location_id: str, window_minutes: int = 10) -> float | None:
        """Most recent ``value`` inside the trailing window, or None."""
        query = _LATEST_QUERY.format(
            bucket=self._bucket, window=int(window_minutes), measurement=MEASUREMENT,
        )
        return await self._first_value(query, location_id)

    async def _first_value(self, query: str, location_id: str) -> float | None:
        tables = await self.client.query_api().query(
            query, params={"location_id": str(location_id)},
        )
        for table in tables:
            for record in table.records:
                value = record.get_value()
                if value is not None:
                    return float(value)
        return None

    async def health_check(self) -> bool:
        """Ping the InfluxDB server."""
        try:
            return bool(await self.client.ping())
        except Exception:
            return False
