"""Tests for AlertConfig validation and env overrides."""

import pytest
from pydantic import ValidationError

from watersense.alerts.config import AlertConfig
from watersense.alerts.queue import DeliveryConfig


class TestAlertConfig:
    def test_defaults(self):
        config = AlertConfig()
        assert config.caution_threshold == 20
        assert config.warning_threshold == 40
        assert config.danger_threshold == 60
        assert config.emergency_threshold == 100
        assert config.default_cooldown_seconds == 300
        assert config.emergency_cooldown_seconds == 60
        assert config.smoothing_window_minutes == 5

    def test_thresholds_must_increase(self):
        with pytest.raises(ValidationError, match="strictly increasing"):
            AlertConfig(warning_threshold=20)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ALERTS_EMERGENCY_COOLDOWN_SECONDS", "30")
        monkeypatch.setenv("ALERTS_BRAND", "Lingga")
        config = AlertConfig()
        assert config.emergency_cooldown_seconds == 30
        assert config.brand == "Lingga"


class TestDeliveryConfig:
    def test_defaults(self):
        config = DeliveryConfig()
        assert config.claim_timeout_seconds == 300
        assert config.max_attempts == 3
        assert config.claim_attempts == 5
        assert config.gateway_url is None

    def test_max_attempts_bounds(self):
        with pytest.raises(ValidationError):
            DeliveryConfig(max_attempts=0)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DELIVERY_GATEWAY_URL", "http://gateway.local/send")
        assert DeliveryConfig().gateway_url == "http://gateway.local/send"
