"""Tests for SmoothingService fallback behaviour."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from watersense.alerts.config import AlertConfig
from watersense.alerts.smoothing import SmoothingService
from watersense.timeseries.store import WaterLevelStore


@pytest.fixture
def store():
    return AsyncMock(spec=WaterLevelStore)


@pytest.fixture
def service(store, alert_config):
    return SmoothingService(store, alert_config)


class TestSmooth:
    @pytest.mark.asyncio
    async def test_returns_rounded_mean(self, service, store):
        store.mean_level.return_value = 42.5
        assert await service.smooth("3", 50.0) == 43.0
        store.mean_level.assert_awaited_once_with("3", window_minutes=5)

    @pytest.mark.asyncio
    async def test_rounds_down_below_half(self, service, store):
        store.mean_level.return_value = 41.49
        assert await service.smooth("3", 50.0) == 41.0

    @pytest.mark.asyncio
    async def test_empty_window_returns_raw(self, service, store):
        store.mean_level.return_value = None
        assert await service.smooth("3", 37.3) == 37.3

    @pytest.mark.asyncio
    async def test_query_error_returns_raw(self, service, store):
        store.mean_level.side_effect = ConnectionError("influx down")
        assert await service.smooth("3", 61.7) == 61.7

    @pytest.mark.asyncio
    async def test_timeout_returns_raw(self, store):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)
            return 10.0

        store.mean_level.side_effect = slow
        service = SmoothingService(store, AlertConfig(smoothing_timeout_seconds=0.01))

        assert await service.smooth("3", 88.0) == 88.0

    @pytest.mark.asyncio
    async def test_window_is_configurable(self, store):
        store.mean_level.return_value = 20.0
        service = SmoothingService(store, AlertConfig(smoothing_window_minutes=15))
        await service.smooth("7", 20.0)
        store.mean_level.assert_awaited_once_with("7", window_minutes=15)
