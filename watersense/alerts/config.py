"""Alert pipeline configuration.

Controls the severity threshold table, per-tier cooldown windows and the
smoothing window. All settings can be overridden via ``ALERTS_*``
environment variables.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertConfig(BaseSettings):
    """Configuration for water-level alert generation."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Lower bound (cm) of each severity tier; highest tier met wins
    caution_threshold: float = Field(
        default=20.0,
        ge=0.0,
        description="Smoothed level at or above which a CAUTION alert fires",
    )
    warning_threshold: float = Field(
        default=40.0,
        ge=0.0,
        description="Smoothed level at or above which a WARNING alert fires",
    )
    danger_threshold: float = Field(
        default=60.0,
        ge=0.0,
        description="Smoothed level at or above which a DANGER alert fires",
    )
    emergency_threshold: float = Field(
        default=100.0,
        ge=0.0,
        description="Smoothed level at or above which an EMERGENCY alert fires",
    )

    # Cooldown: seconds since the last sent notification of the same tier
    default_cooldown_seconds: int = Field(
        default=300,
        ge=0,
        description="Cooldown for CAUTION, WARNING and DANGER tiers",
    )
    emergency_cooldown_seconds: int = Field(
        default=60,
        ge=0,
        description="Cooldown for the EMERGENCY tier",
    )

    # Smoothing
    smoothing_window_minutes: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Trailing window averaged before classification",
    )
    smoothing_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Give up on the time-series query after this long",
    )

    brand: str = Field(
        default="WaterSense",
        min_length=1,
        description="Prefix of every outbound SMS",
    )

    @model_validator(mode="after")
    def _thresholds_strictly_increasing(self) -> "AlertConfig":
        ordered = [
            self.caution_threshold,
            self.warning_threshold,
            self.danger_threshold,
            self.emergency_threshold,
        ]
        if any(lo >= hi for lo, hi in zip(ordered, ordered[1:])):
            raise ValueError(
                f"Severity thresholds must be strictly increasing, got {ordered}"
            )
        return self
