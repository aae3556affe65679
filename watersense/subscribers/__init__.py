"""SMS subscriber registry."""

from watersense.subscribers.repository import SubscriberRepository
from watersense.subscribers.schemas import (
    DEFAULT_LOCATION,
    PHONE_NUMBER_PATTERN,
    Subscriber,
    SubscribeResult,
    is_valid_phone_number,
)

__all__ = [
    "DEFAULT_LOCATION",
    "PHONE_NUMBER_PATTERN",
    "Subscriber",
    "SubscribeResult",
    "SubscriberRepository",
    "is_valid_phone_number",
]
