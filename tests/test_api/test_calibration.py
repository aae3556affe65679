"""Tests for the calibration endpoints."""

from datetime import datetime, timezone

from watersense.calibration.repository import Calibration


class TestGetCalibration:
    def test_returns_row_as_list(self, client, mock_calibration_repo):
        mock_calibration_repo.get.return_value = Calibration(
            sensorid=3,
            calib_offset=-2.5,
            updated_at=datetime(2026, 7, 1, tzinfo=timezone.utc),
        )

        response = client.get("/api/sensors/calibration", params={"sensorid": 3})

        assert response.json() == [
            {
                "sensorid": 3,
                "calib_offset": -2.5,
                "calib_scale": 1.0,
                "updated_at": "2026-07-01T00:00:00+00:00",
            }
        ]

    def test_unknown_sensor_is_empty_list(self, client, mock_calibration_repo):
        mock_calibration_repo.get.return_value = None
        assert client.get("/api/sensors/calibration?sensorid=9").json() == []

    def test_sensorid_required(self, client):
        assert client.get("/api/sensors/calibration").status_code == 422


class TestSaveCalibration:
    def test_save(self, client, mock_calibration_repo):
        mock_calibration_repo.save.return_value = Calibration(sensorid=3, calib_offset=4.0)

        response = client.post(
            "/api/sensors/calibration", json={"location_id": "3", "offset": "4"},
        )

        assert response.json() == {"success": True, "offset": 4.0}
        mock_calibration_repo.save.assert_awaited_once_with(3, 4.0)

    def test_invalid_location(self, client, mock_calibration_repo):
        response = client.post(
            "/api/sensors/calibration", json={"location_id": 0, "offset": 1},
        )

        assert response.status_code == 422
        mock_calibration_repo.save.assert_not_awaited()

    def test_non_finite_offset_rejected(self, client, mock_calibration_repo):
        response = client.post(
            "/api/sensors/calibration",
            content='{"location_id": 3, "offset": NaN}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        mock_calibration_repo.save.assert_not_awaited()
