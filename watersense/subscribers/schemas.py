"""Schema definitions for SMS subscribers.

Maps 1:1 to the ``sms_subscribers`` table. Subscribers are deactivated
instead of deleted so their delivery history keeps its foreign key.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

# Philippine mobile numbers in local format: 09XXXXXXXXX
PHONE_NUMBER_PATTERN = re.compile(r"^09\d{9}$")

DEFAULT_LOCATION = "Barangay Lingga"

SubscribeOutcome = Literal["created", "reactivated", "already_subscribed"]


def is_valid_phone_number(phone_number: str) -> bool:
    """Check a number against the local mobile format."""
    return bool(PHONE_NUMBER_PATTERN.match(phone_number or ""))


@dataclass
class Subscriber:
    """A row from the sms_subscribers table.

    Attributes:
        id: Serial primary key.
        phone_number: Local mobile number, unique.
        location: Free-text area the subscriber signed up for.
        is_active: Only active subscribers receive new deliveries.
        created_at: Signup time.
        updated_at: Last activation change.
    """

    id: int
    phone_number: str
    location: str = DEFAULT_LOCATION
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not is_valid_phone_number(self.phone_number):
            raise ValueError(f"Invalid Philippine mobile number: {self.phone_number!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phone_number": self.phone_number,
            "location": self.location,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class SubscribeResult:
    """What ``subscribe`` did for a phone number."""

    outcome: SubscribeOutcome
    subscriber_id: int

    @property
    def message(self) -> str:
        return {
            "created": "Successfully subscribed",
            "reactivated": "Subscription reactivated",
            "already_subscribed": "Already subscribed",
        }[self.outcome]
