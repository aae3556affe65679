"""Tests for CalibrationRepository with mocked Database."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from watersense.calibration.repository import Calibration, CalibrationRepository


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def repo(mock_db):
    return CalibrationRepository(mock_db)


def _row(offset: float = -2.5):
    return {
        "sensorid": 3,
        "calib_offset": offset,
        "calib_scale": 1.0,
        "updated_at": datetime(2026, 7, 1, tzinfo=timezone.utc),
    }


class TestCalibrationRepository:
    @pytest.mark.asyncio
    async def test_get(self, repo, mock_db):
        mock_db.fetchrow.return_value = _row()

        calibration = await repo.get(3)

        assert calibration.calib_offset == -2.5
        assert calibration.to_dict()["updated_at"] == "2026-07-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_get_missing(self, repo, mock_db):
        mock_db.fetchrow.return_value = None
        assert await repo.get(3) is None

    @pytest.mark.asyncio
    async def test_save_upserts_with_unit_scale(self, repo, mock_db):
        mock_db.fetchrow.return_value = _row(offset=4.0)

        calibration = await repo.save(3, 4)

        sql, sensorid, offset = mock_db.fetchrow.await_args.args
        assert "ON CONFLICT (sensorid)" in sql
        assert "calib_scale = 1" in sql
        assert (sensorid, offset) == (3, 4.0)
        assert calibration.calib_scale == 1.0


class TestCalibration:
    def test_apply(self):
        assert Calibration(sensorid=1, calib_offset=-3.0).apply(50.0) == 47.0
