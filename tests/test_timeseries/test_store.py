"""Tests for WaterLevelStore with a mocked InfluxDB client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from watersense.timeseries.store import MEASUREMENT, WaterLevelStore


def _record(value):
    record = MagicMock()
    record.get_value.return_value = value
    return record


def _table(*values):
    table = MagicMock()
    table.records = [_record(v) for v in values]
    return table


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.write_api.return_value.write = AsyncMock(return_value=True)
    client.query_api.return_value.query = AsyncMock(return_value=[])
    client.ping = AsyncMock(return_value=True)
    client.close = AsyncMock()
    return client


@pytest.fixture
def store(mock_client):
    return WaterLevelStore(
        url="http://influx:8086",
        token="t",
        org="watersense",
        bucket="water_levels",
        client=mock_client,
    )


class TestWrite:
    @pytest.mark.asyncio
    async def test_point_shape(self, store, mock_client):
        observed = datetime(2026, 7, 14, 9, 30, tzinfo=timezone.utc)

        await store.write_reading("3", 42.5, battery=87, status="Caution", observed_at=observed)

        kwargs = mock_client.write_api.return_value.write.await_args.kwargs
        assert kwargs["bucket"] == "water_levels"
        line = kwargs["record"].to_line_protocol()
        assert line.startswith(f"{MEASUREMENT},location_id=3 ")
        assert "value=42.5" in line
        assert "battery=87i" in line
        assert 'status="Caution"' in line


class TestQueries:
    @pytest.mark.asyncio
    async def test_mean_level_uses_params(self, store, mock_client):
        query = mock_client.query_api.return_value.query
        query.return_value = [_table(41.6)]

        assert await store.mean_level("3", window_minutes=5) == 41.6

        flux = query.await_args.args[0]
        assert "range(start: -5m)" in flux
        assert "mean()" in flux
        assert "params.location_id" in flux
        assert query.await_args.kwargs["params"] == {"location_id": "3"}

    @pytest.mark.asyncio
    async def test_mean_covers_whole_trailing_window(self, store, mock_client):
        query = mock_client.query_api.return_value.query

        await store.mean_level("3", window_minutes=5)

        flux = query.await_args.args[0]
        lines = [line.strip() for line in flux.strip().splitlines()]
        assert lines[1] == "|> range(start: -5m)"
        assert lines[-1] == "|> mean()"
        assert "aggregateWindow" not in flux
        assert "last()" not in flux

    @pytest.mark.asyncio
    async def test_empty_window_is_none(self, store, mock_client):
        mock_client.query_api.return_value.query.return_value = [_table()]
        assert await store.mean_level("3") is None

    @pytest.mark.asyncio
    async def test_null_aggregate_is_none(self, store, mock_client):
        mock_client.query_api.return_value.query.return_value = [_table(None)]
        assert await store.mean_level("3") is None

    @pytest.mark.asyncio
    async def test_latest_level(self, store, mock_client):
        query = mock_client.query_api.return_value.query
        query.return_value = [_table(55)]

        assert await store.latest_level("9") == 55.0
        assert "range(start: -10m)" in query.await_args.args[0]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_health_check(self, store, mock_client):
        assert await store.health_check() is True
        mock_client.ping.side_effect = OSError("unreachable")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, store, mock_client):
        async with store:
            pass
        mock_client.close.assert_awaited_once()
