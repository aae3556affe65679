"""SMS delivery endpoints polled by the gateway device.

The device calls ``select`` to claim at most one delivery, sends it, then
reports back through ``update`` (sent) or ``release`` (failed).
"""

import structlog
from fastapi import APIRouter, Depends

from watersense.alerts.queue import DeliveryQueue
from watersense.api.auth import verify_api_key
from watersense.api.dependencies import get_delivery_queue
from watersense.api.models import (
    ErrorResponse,
    SmsAckRequest,
    SmsAckResponse,
    SmsDeliveryItem,
    SmsReleaseRequest,
    SmsReleaseResponse,
)

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/alerts/sms")


@router.get(
    "/select",
    response_model=list[SmsDeliveryItem],
    responses={401: {"model": ErrorResponse, "description": "Wrong API key"}},
    summary="Claim the next pending SMS",
    description=(
        "Returns a list with exactly one claimed delivery, or an empty list "
        "when there is no work (empty queue, SMS disabled, or contention)."
    ),
)
async def claim_delivery(
    api_key: str = Depends(verify_api_key),
    queue: DeliveryQueue = Depends(get_delivery_queue),
) -> list[SmsDeliveryItem]:
    delivery = await queue.claim_next_delivery()
    if delivery is None:
        return []

    return [
        SmsDeliveryItem(
            id=delivery.id,
            cp_num=delivery.phone_number,
            message=delivery.message,
            delivery_status=int(delivery.delivery_status),
        )
    ]


@router.post(
    "/update",
    response_model=SmsAckResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong API key"},
        422: {"model": ErrorResponse, "description": "Invalid delivery id"},
    },
    summary="Acknowledge a sent SMS",
)
async def acknowledge_delivery(
    request: SmsAckRequest,
    api_key: str = Depends(verify_api_key),
    queue: DeliveryQueue = Depends(get_delivery_queue),
) -> SmsAckResponse:
    result = await queue.acknowledge_delivery(request.id)
    logger.info("Delivery acknowledged", delivery_id=request.id, result=result)
    return SmsAckResponse(id=request.id, result=result)


@router.post(
    "/release",
    response_model=SmsReleaseResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong API key"},
        422: {"model": ErrorResponse, "description": "Invalid delivery id"},
    },
    summary="Report a failed SMS",
    description="Returns the delivery to the queue, or fails it once retries run out.",
)
async def release_delivery(
    request: SmsReleaseRequest,
    api_key: str = Depends(verify_api_key),
    queue: DeliveryQueue = Depends(get_delivery_queue),
) -> SmsReleaseResponse:
    result = await queue.release_delivery(request.id, request.error)
    logger.info("Delivery released", delivery_id=request.id, result=result)
    return SmsReleaseResponse(id=request.id, result=result)
