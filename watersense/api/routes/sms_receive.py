"""Inbound SMS keyword replies."""

import structlog
from fastapi import APIRouter, Depends

from watersense.alerts.triggers import round_half_up
from watersense.api.auth import verify_api_key
from watersense.api.dependencies import get_timeseries_store
from watersense.api.models import SmsReceiveRequest, SmsReceiveResponse
from watersense.observability.metrics import get_metrics
from watersense.timeseries.store import WaterLevelStore

logger = structlog.get_logger(__name__)
router = APIRouter()

LEVEL_KEYWORDS = frozenset({"water sense", "water level"})
LATEST_WINDOW_MINUTES = 10


@router.post(
    "/api/alerts/sms/receive",
    response_model=SmsReceiveResponse,
    response_model_exclude_none=True,
    summary="Reply to an inbound SMS",
    description=(
        "Texts matching a level keyword get the latest reading of the "
        "device's location. Anything else gets an empty object."
    ),
)
async def receive_sms(
    request: SmsReceiveRequest,
    api_key: str = Depends(verify_api_key),
    store: WaterLevelStore = Depends(get_timeseries_store),
) -> SmsReceiveResponse:
    if not request.device_id or not request.message:
        return SmsReceiveResponse()

    if request.message.strip().lower() not in LEVEL_KEYWORDS:
        return SmsReceiveResponse()

    try:
        level = await store.latest_level(
            request.device_id, window_minutes=LATEST_WINDOW_MINUTES,
        )
    except Exception as e:
        logger.error("Latest level query failed", device_id=request.device_id, error=str(e))
        get_metrics().record_timeseries_error("latest")
        return SmsReceiveResponse()

    if level is None:
        return SmsReceiveResponse(reply="Water level data is not available yet.")

    return SmsReceiveResponse(
        reply=f"Current water level is {round_half_up(level)} cm.",
    )
