"""Tests for the stateless classification functions."""

import pytest

from watersense.alerts.config import AlertConfig
from watersense.alerts.schemas import Severity
from watersense.alerts.triggers import (
    classify_level,
    cooldown_for,
    format_message,
    round_half_up,
    severity_for,
)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected",
        [(42.5, 43), (42.49, 42), (0.5, 1), (2.5, 3), (99.5, 100), (0.0, 0)],
    )
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


class TestSeverityFor:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (180.0, Severity.EMERGENCY),
            (100.0, Severity.EMERGENCY),
            (99.0, Severity.DANGER),
            (60.0, Severity.DANGER),
            (59.0, Severity.WARNING),
            (40.0, Severity.WARNING),
            (39.0, Severity.CAUTION),
            (20.0, Severity.CAUTION),
            (19.0, Severity.NONE),
            (0.0, Severity.NONE),
        ],
    )
    def test_boundaries(self, alert_config, level, expected):
        assert severity_for(level, alert_config) is expected

    def test_custom_thresholds(self):
        config = AlertConfig(
            caution_threshold=10,
            warning_threshold=15,
            danger_threshold=25,
            emergency_threshold=50,
        )
        assert severity_for(12, config) is Severity.CAUTION
        assert severity_for(50, config) is Severity.EMERGENCY


class TestFormatMessage:
    def test_emergency_includes_evacuation_line(self):
        assert format_message(Severity.EMERGENCY, 104.0) == (
            "WaterSense: Emergency\nWater level is 104 cm.\nEVACUATE IMMEDIATELY."
        )

    def test_danger(self):
        assert format_message(Severity.DANGER, 72.0) == (
            "WaterSense: Danger\nWater level is 72 cm."
        )

    def test_warning(self):
        assert format_message(Severity.WARNING, 45.0) == (
            "WaterSense: Warning\nWater level is 45 cm."
        )

    def test_caution_is_titled_alert(self):
        assert format_message(Severity.CAUTION, 20.0) == (
            "WaterSense: Alert\nWater level is 20 cm."
        )

    def test_unrounded_fallback_value_is_kept(self):
        message = format_message(Severity.DANGER, 61.7)
        assert "Water level is 61.7 cm." in message

    def test_brand_prefix(self):
        assert format_message(Severity.WARNING, 41.0, brand="Lingga").startswith(
            "Lingga: Warning"
        )


class TestClassifyLevel:
    def test_below_lowest_threshold_is_none(self, alert_config):
        assert classify_level(19.0, alert_config) is None

    def test_caution_uses_alert_type(self, alert_config):
        result = classify_level(25.0, alert_config)
        assert result is not None
        assert result.severity is Severity.CAUTION
        assert result.alert_type == "ALERT"
        assert result.level == 25.0

    def test_emergency(self, alert_config):
        result = classify_level(100.0, alert_config)
        assert result.severity is Severity.EMERGENCY
        assert result.alert_type == "EMERGENCY"
        assert result.message.endswith("EVACUATE IMMEDIATELY.")


class TestCooldownFor:
    def test_emergency_has_short_cooldown(self, alert_config):
        assert cooldown_for(Severity.EMERGENCY, alert_config) == 60

    @pytest.mark.parametrize(
        "severity", [Severity.CAUTION, Severity.WARNING, Severity.DANGER],
    )
    def test_other_tiers_share_default(self, alert_config, severity):
        assert cooldown_for(severity, alert_config) == 300
