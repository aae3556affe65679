"""Reading ingestion endpoint for sensor nodes."""

import structlog
from fastapi import APIRouter, Depends

from watersense.api.auth import verify_api_key
from watersense.api.dependencies import get_reading_service
from watersense.api.models import ErrorResponse, IngestRequest, IngestResponse
from watersense.readings.service import ReadingService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/api/ingest",
    response_model=IngestResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong API key"},
        422: {"model": ErrorResponse, "description": "Malformed reading"},
    },
    summary="Ingest a water-level reading",
    description=(
        "Clamp and store one reading, then run the alert pipeline. Storage "
        "and alerting failures are logged and never change the response."
    ),
)
async def ingest_reading(
    request: IngestRequest,
    api_key: str = Depends(verify_api_key),
    reading_service: ReadingService = Depends(get_reading_service),
) -> IngestResponse:
    reading = await reading_service.ingest(
        request.location_id,
        request.water_level,
        battery=request.battery,
    )

    logger.info(
        "Reading ingested",
        location_id=reading.location_id,
        level_cm=reading.water_level_cm,
        status=reading.status,
    )

    return IngestResponse(
        location_id=reading.location_id,
        water_level_cm=reading.water_level_cm,
        status=reading.status,
    )
