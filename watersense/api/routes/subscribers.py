"""Subscriber signup and removal endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from watersense.api.auth import verify_api_key
from watersense.api.dependencies import get_subscriber_repository
from watersense.api.models import (
    ErrorResponse,
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeResponse,
)
from watersense.subscribers.repository import SubscriberRepository
from watersense.subscribers.schemas import is_valid_phone_number

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/alerts/subscribers")

INVALID_NUMBER = "Invalid Philippine mobile number"


@router.post(
    "",
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid phone number"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Subscribe a phone number to alerts",
)
async def subscribe(
    request: SubscribeRequest,
    subscriber_repo: SubscriberRepository = Depends(get_subscriber_repository),
) -> SubscribeResponse:
    if not is_valid_phone_number(request.phone_number):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_NUMBER)

    try:
        result = await subscriber_repo.subscribe(request.phone_number, request.location)
    except Exception as e:
        logger.error(f"Failed to subscribe: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to subscribe",
        )

    logger.info("Subscriber registered", outcome=result.outcome)

    return SubscribeResponse(
        message=result.message,
        subscriber_id=result.subscriber_id,
        already_subscribed=result.outcome == "already_subscribed",
        reactivated=result.outcome == "reactivated",
    )


@router.delete(
    "/{phone_number}",
    response_model=UnsubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid phone number"},
        401: {"model": ErrorResponse, "description": "Wrong API key"},
    },
    summary="Deactivate a subscriber",
)
async def unsubscribe(
    phone_number: str,
    api_key: str = Depends(verify_api_key),
    subscriber_repo: SubscriberRepository = Depends(get_subscriber_repository),
) -> UnsubscribeResponse:
    if not is_valid_phone_number(phone_number):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_NUMBER)

    deactivated = await subscriber_repo.unsubscribe(phone_number)
    return UnsubscribeResponse(phone_number=phone_number, deactivated=deactivated)
