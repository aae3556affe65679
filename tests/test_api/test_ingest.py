"""Tests for POST /api/ingest."""

import pytest

from watersense.readings.schemas import Reading


class TestIngest:
    def test_accepts_reading(self, client, mock_reading_service):
        mock_reading_service.ingest.return_value = Reading(
            location_id="3", water_level_cm=72.4, status="Warning", battery=81,
        )

        response = client.post(
            "/api/ingest", json={"location_id": 3, "water_level": 72.4, "battery": 81},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "location_id": "3",
            "water_level_cm": 72.4,
            "status": "Warning",
        }
        mock_reading_service.ingest.assert_awaited_once_with("3", 72.4, battery=81)

    def test_numeric_string_level_is_accepted(self, client, mock_reading_service):
        mock_reading_service.ingest.return_value = Reading(
            location_id="3", water_level_cm=12.0, status="Normal",
        )

        response = client.post("/api/ingest", json={"location_id": "3", "water_level": "12"})

        assert response.status_code == 200
        mock_reading_service.ingest.assert_awaited_once_with("3", 12.0, battery=None)

    def test_non_numeric_level_rejected(self, client, mock_reading_service):
        response = client.post(
            "/api/ingest", json={"location_id": "3", "water_level": "high"},
        )

        assert response.status_code == 422
        mock_reading_service.ingest.assert_not_awaited()

    def test_missing_location_rejected(self, client, mock_reading_service):
        response = client.post("/api/ingest", json={"water_level": 40})

        assert response.status_code == 422
        mock_reading_service.ingest.assert_not_awaited()

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_level_rejected(self, client, mock_reading_service, literal):
        response = client.post(
            "/api/ingest",
            content=f'{{"location_id": "3", "water_level": {literal}}}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        mock_reading_service.ingest.assert_not_awaited()
