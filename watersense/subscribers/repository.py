"""Database repository for the sms_subscribers table."""

import logging

from watersense.storage.database import Database, affected_rows
from watersense.subscribers.schemas import (
    DEFAULT_LOCATION,
    Subscriber,
    SubscribeResult,
    is_valid_phone_number,
)

logger = logging.getLogger(__name__)

# Inserts a new row or flips an inactive one back on. The xmax trick tells
# a fresh insert apart from an update in the RETURNING clause.
_SUBSCRIBE_SQL = """
INSERT INTO sms_subscribers (phone_number, location, is_active, created_at, updated_at)
VALUES ($1, $2, TRUE, NOW(), NOW())
ON CONFLICT (phone_number) DO UPDATE SET
    is_active = TRUE,
    updated_at = NOW()
WHERE sms_subscribers.is_active = FALSE
RETURNING id, (xmax = 0) AS inserted
"""


def _record_to_subscriber(record) -> Subscriber:
    """Convert an asyncpg Record to a Subscriber dataclass."""
    return Subscriber(
        id=record["id"],
        phone_number=record["phone_number"],
        location=record["location"],
        is_active=record["is_active"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SubscriberRepository:
    """CRUD operations for the sms_subscribers table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def subscribe(
        self,
        phone_number: str,
        location: str = DEFAULT_LOCATION,
    ) -> SubscribeResult:
        """
        Subscribe a phone number, reactivating it if it was deactivated.

        Args:
            phone_number: Local mobile number (``09XXXXXXXXX``).
            location: Area label stored on first signup.

        Returns:
            SubscribeResult with outcome created, reactivated or
            already_subscribed.

        Raises:
            ValueError: If the phone number is malformed.
        """
        if not is_valid_phone_number(phone_number):
            raise ValueError(f"Invalid Philippine mobile number: {phone_number!r}")

        row = await self._db.fetchrow(_SUBSCRIBE_SQL, phone_number, location)
        if row is None:
            # Conflict on an active row: the WHERE clause skipped the update
            existing = await self.get_by_phone(phone_number)
            if existing is None:
                raise RuntimeError(f"Subscriber {phone_number} vanished during subscribe")
            return SubscribeResult("already_subscribed", existing.id)

        outcome = "created" if row["inserted"] else "reactivated"
        logger.info("Subscriber %s %s", phone_number, outcome)
        return SubscribeResult(outcome, row["id"])

    async def unsubscribe(self, phone_number: str) -> bool:
        """
        Deactivate a subscriber.

        Pending deliveries already queued for the number are left to the
        claim and sweep paths, which skip inactive subscribers.

        Returns:
            True if an active subscriber was deactivated.
        """
        status = await self._db.execute(
            """
            UPDATE sms_subscribers
            SET is_active = FALSE, updated_at = NOW()
            WHERE phone_number = $1 AND is_active = TRUE
            """,
            phone_number,
        )
        deactivated = affected_rows(status) == 1
        if deactivated:
            logger.info("Subscriber %s deactivated", phone_number)
        return deactivated

    async def get_by_phone(self, phone_number: str) -> Subscriber | None:
        """Fetch a subscriber by phone number, active or not."""
        row = await self._db.fetchrow(
            "SELECT * FROM sms_subscribers WHERE phone_number = $1",
            phone_number,
        )
        if row is None:
            return None
        return _record_to_subscriber(row)
