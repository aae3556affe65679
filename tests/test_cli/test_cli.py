"""Tests for the watersense CLI commands."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from watersense.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.health_check.return_value = True
    return db


class TestInitDb:
    def test_creates_schema(self, runner, mock_db):
        with patch("watersense.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["init-db"])

        assert result.exit_code == 0, result.output
        assert "Database initialized successfully" in result.output
        assert "CREATE TABLE IF NOT EXISTS alert_notifications" in (
            mock_db.execute.await_args.args[0]
        )
        mock_db.close.assert_awaited_once()


class TestSweep:
    def test_reports_counts(self, runner, mock_db):
        mock_db.fetch.return_value = [
            {"id": 1, "delivery_status": 0},
            {"id": 2, "delivery_status": 3},
        ]

        with patch("watersense.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["sweep", "--older-than", "120"])

        assert result.exit_code == 0, result.output
        assert "Released: 1  Failed: 1" in result.output
        assert "failed: 2" in result.output
        assert mock_db.fetch.await_args.args[1] == 120.0
        mock_db.close.assert_awaited_once()


class TestDeliveries:
    def test_lists_failed_rows(self, runner, mock_db):
        mock_db.fetch.return_value = [
            {
                "id": 42,
                "subscriber_id": 7,
                "status": "DANGER",
                "alert_type": "DANGER",
                "water_level_cm": 72.0,
                "message": "WaterSense: Danger\nWater level is 72 cm.",
                "delivery_status": 3,
                "attempt_count": 3,
                "error_message": "claim expired",
            }
        ]

        with patch("watersense.storage.database.Database", return_value=mock_db):
            result = runner.invoke(
                main, ["deliveries", "--status", "failed", "--severity", "danger", "--limit", "5"],
            )

        assert result.exit_code == 0, result.output
        assert "42  FAILED" in result.output
        assert "attempts=3" in result.output
        assert "error=claim expired" in result.output
        sql, *params = mock_db.fetch.await_args.args
        assert params == [3, "DANGER", 5, 0]
        mock_db.close.assert_awaited_once()

    def test_empty(self, runner, mock_db):
        mock_db.fetch.return_value = []

        with patch("watersense.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["deliveries"])

        assert result.exit_code == 0, result.output
        assert "No deliveries found" in result.output


class TestDispatch:
    def test_requires_gateway(self, runner, monkeypatch):
        monkeypatch.delenv("DELIVERY_GATEWAY_URL", raising=False)

        result = runner.invoke(main, ["dispatch", "--no-metrics"])

        assert result.exit_code == 1
        assert "No SMS gateway configured" in result.output


class TestHealth:
    def test_all_healthy(self, runner, mock_db):
        store = AsyncMock()
        store.__aenter__.return_value = store
        store.health_check.return_value = True

        with patch("watersense.storage.database.Database", return_value=mock_db), \
                patch("watersense.timeseries.store.WaterLevelStore", return_value=store):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 0, result.output
        assert "postgres: True" in result.output
        assert "influxdb: True" in result.output

    def test_postgres_down(self, runner):
        failing = AsyncMock()
        failing.connect.side_effect = OSError("refused")
        store = AsyncMock()
        store.__aenter__.return_value = store
        store.health_check.return_value = False

        with patch("watersense.storage.database.Database", return_value=failing), \
                patch("watersense.timeseries.store.WaterLevelStore", return_value=store):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "Some services unhealthy!" in result.output


class TestServe:
    def test_runs_uvicorn_factory(self, runner):
        metrics = MagicMock()
        with patch("watersense.cli.get_metrics", return_value=metrics), \
                patch("uvicorn.run") as mock_run:
            result = runner.invoke(main, ["serve", "--port", "3100", "--metrics-port", "9100"])

        assert result.exit_code == 0, result.output
        metrics.start_server.assert_called_once_with(port=9100)
        args, kwargs = mock_run.call_args
        assert args[0] == "watersense.api.app:create_app"
        assert kwargs["factory"] is True
        assert kwargs["port"] == 3100
