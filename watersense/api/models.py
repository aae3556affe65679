"""
Request and response models for the watersense API.
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator

from watersense.subscribers.schemas import DEFAULT_LOCATION


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type",
    )


# Ingest models


class IngestRequest(BaseModel):
    """Reading posted by a sensor node."""

    location_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Sensor node / location identifier",
    )
    water_level: float = Field(
        ...,
        allow_inf_nan=False,
        description="Raw water level in cm (clamped server-side)",
    )
    battery: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Battery percentage",
    )

    @field_validator("location_id", mode="before")
    @classmethod
    def _coerce_location_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class IngestResponse(BaseModel):
    """Acknowledgement returned to the sensor node."""

    success: bool = Field(default=True)
    location_id: str = Field(..., description="Location the reading was stored under")
    water_level_cm: float = Field(..., description="Level after clamping")
    status: str = Field(..., description="Dashboard status band")


# SMS delivery models


class SmsDeliveryItem(BaseModel):
    """A claimed delivery, in the shape the gateway device consumes."""

    id: int = Field(..., description="Delivery identifier, echoed back on update")
    cp_num: str = Field(..., description="Recipient mobile number")
    message: str = Field(..., description="SMS body")
    delivery_status: int = Field(..., description="Always 2 (claimed)")


class SmsAckRequest(BaseModel):
    """Report of a successful send."""

    id: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("id", "ID"),
        description="Delivery identifier returned by the claim",
    )


class SmsAckResponse(BaseModel):
    id: int
    result: str = Field(..., description="SENT or SKIPPED")


class SmsReleaseRequest(BaseModel):
    """Report of a failed send."""

    id: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("id", "ID"),
        description="Delivery identifier returned by the claim",
    )
    error: str | None = Field(
        default=None,
        max_length=1000,
        description="Failure reason (stored truncated)",
    )


class SmsReleaseResponse(BaseModel):
    id: int
    result: str = Field(..., description="RELEASED, FAILED or SKIPPED")


class SmsReceiveRequest(BaseModel):
    """Inbound SMS forwarded by the gateway device."""

    device_id: str | None = Field(default=None, description="Location the device serves")
    message: str | None = Field(default=None, description="Inbound SMS text")

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class SmsReceiveResponse(BaseModel):
    reply: str | None = Field(default=None, description="Reply to send back, if any")


# Subscriber models


class SubscribeRequest(BaseModel):
    phone_number: str = Field(..., description="Mobile number, 09XXXXXXXXX")
    location: str = Field(
        default=DEFAULT_LOCATION,
        min_length=1,
        max_length=100,
        description="Area the subscriber signs up for",
    )


class SubscribeResponse(BaseModel):
    success: bool = Field(default=True)
    message: str = Field(..., description="Human-readable outcome")
    subscriber_id: int = Field(..., description="Subscriber row id")
    already_subscribed: bool = Field(default=False)
    reactivated: bool = Field(default=False)


class UnsubscribeResponse(BaseModel):
    phone_number: str
    deactivated: bool = Field(..., description="False if the number was not active")


# Calibration models


class CalibrationItem(BaseModel):
    sensorid: int
    calib_offset: float
    calib_scale: float
    updated_at: str | None = Field(default=None, description="ISO timestamp")


class CalibrationSaveRequest(BaseModel):
    location_id: int = Field(..., ge=1, description="Sensor / location identifier")
    offset: float = Field(..., allow_inf_nan=False, description="Additive correction in cm")


class CalibrationSaveResponse(BaseModel):
    success: bool = Field(default=True)
    offset: float


# Health models


class ComponentHealth(BaseModel):
    """Health of a single infrastructure dependency."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None)
    details: dict = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    deliveries: dict[str, int] = Field(
        default_factory=dict,
        description="Delivery row counts by lifecycle state",
    )
    sms_disabled: bool = Field(default=False)
    version: str = Field(default="0.1.0")
