"""Tests for POST /api/alerts/sms/receive."""

import pytest


class TestReceive:
    @pytest.mark.parametrize("text", ["water sense", "Water Level", "  WATER SENSE "])
    def test_keyword_replies_with_latest_level(self, client, mock_store, text):
        mock_store.latest_level.return_value = 42.5

        response = client.post(
            "/api/alerts/sms/receive", json={"device_id": 3, "message": text},
        )

        assert response.json() == {"reply": "Current water level is 43 cm."}
        mock_store.latest_level.assert_awaited_once_with("3", window_minutes=10)

    def test_no_recent_data(self, client, mock_store):
        mock_store.latest_level.return_value = None

        response = client.post(
            "/api/alerts/sms/receive", json={"device_id": "3", "message": "water level"},
        )

        assert response.json() == {"reply": "Water level data is not available yet."}

    def test_other_text_gets_empty_object(self, client, mock_store):
        response = client.post(
            "/api/alerts/sms/receive", json={"device_id": "3", "message": "hello"},
        )

        assert response.json() == {}
        mock_store.latest_level.assert_not_awaited()

    def test_missing_fields_get_empty_object(self, client):
        response = client.post("/api/alerts/sms/receive", json={"message": "water sense"})
        assert response.json() == {}

    def test_query_failure_gets_empty_object(self, client, mock_store):
        mock_store.latest_level.side_effect = ConnectionError("influx down")

        response = client.post(
            "/api/alerts/sms/receive", json={"device_id": "3", "message": "water sense"},
        )

        assert response.status_code == 200
        assert response.json() == {}
