"""Sensor calibration endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from watersense.api.auth import verify_api_key
from watersense.api.dependencies import get_calibration_repository
from watersense.api.models import (
    CalibrationItem,
    CalibrationSaveRequest,
    CalibrationSaveResponse,
    ErrorResponse,
)
from watersense.calibration.repository import CalibrationRepository

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/sensors/calibration")


@router.get(
    "",
    response_model=list[CalibrationItem],
    summary="Get a sensor's calibration",
    description="Returns a list with the sensor's row, or an empty list if it has none.",
)
async def get_calibration(
    sensorid: int = Query(..., ge=1, description="Sensor / location identifier"),
    calibration_repo: CalibrationRepository = Depends(get_calibration_repository),
) -> list[CalibrationItem]:
    calibration = await calibration_repo.get(sensorid)
    if calibration is None:
        return []
    return [CalibrationItem(**calibration.to_dict())]


@router.post(
    "",
    response_model=CalibrationSaveResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong API key"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Save a sensor's calibration offset",
)
async def save_calibration(
    request: CalibrationSaveRequest,
    api_key: str = Depends(verify_api_key),
    calibration_repo: CalibrationRepository = Depends(get_calibration_repository),
) -> CalibrationSaveResponse:
    try:
        calibration = await calibration_repo.save(request.location_id, request.offset)
    except Exception as e:
        logger.error(f"Failed to save calibration: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save calibration: {str(e)}",
        )

    return CalibrationSaveResponse(offset=calibration.calib_offset)
