"""Ingest configuration.

Clamp range applied to incoming levels and the dashboard status bands
stored alongside each point. Override via ``READINGS_*`` environment
variables.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReadingConfig(BaseSettings):
    """Configuration for sensor reading ingestion."""

    model_config = SettingsConfigDict(
        env_prefix="READINGS_",
        case_sensitive=False,
        extra="ignore",
    )

    min_level_cm: float = Field(default=0.0, description="Readings below are clamped up")
    max_level_cm: float = Field(default=180.0, description="Readings above are clamped down")

    caution_band_cm: float = Field(default=30.0, ge=0.0)
    warning_band_cm: float = Field(default=60.0, ge=0.0)
    danger_band_cm: float = Field(default=120.0, ge=0.0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "ReadingConfig":
        if self.min_level_cm >= self.max_level_cm:
            raise ValueError("min_level_cm must be below max_level_cm")
        if not self.caution_band_cm < self.warning_band_cm < self.danger_band_cm:
            raise ValueError("Status bands must be strictly increasing")
        return self
