"""Notification repository for the alert_notifications delivery table.

Follows the asyncpg repository pattern: SQL lives here, callers get
dataclasses back. Every state transition is a single conditional UPDATE
so concurrent pollers, acknowledgements and the recovery sweep serialize
on the row lock instead of on anything held in process memory.
"""

import logging
from datetime import datetime
from typing import Any

from watersense.alerts.schemas import (
    AlertClassification,
    ClaimedDelivery,
    DeliveryStatus,
    PendingDelivery,
    ReleaseResult,
    Severity,
    SweepResult,
)
from watersense.storage.database import Database, affected_rows

logger = logging.getLogger(__name__)

ERROR_MESSAGE_MAX = 255

_CLAIM_SQL = """
    UPDATE alert_notifications
    SET delivery_status = 2, claimed_at = NOW()
    WHERE id = (
        SELECT id
        FROM alert_notifications
        WHERE delivery_status = 0
        ORDER BY id ASC
        LIMIT 1
        FOR UPDATE
    )
    RETURNING id
"""

_FETCH_CLAIMED_SQL = """
    SELECT
        a.id,
        s.phone_number,
        a.message,
        a.delivery_status,
        a.attempt_count
    FROM alert_notifications a
    JOIN sms_subscribers s ON s.id = a.subscriber_id
    WHERE a.id = $1
      AND a.delivery_status = 2
      AND s.is_active = TRUE
"""


class NotificationRepository:
    """Repository for delivery rows and the notification history.

    Provides the cooldown lookup, fan-out enqueue, claim, acknowledge,
    release and sweep operations over ``alert_notifications``.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    async def last_sent_at(self, severity: Severity) -> datetime | None:
        """
        Timestamp of the most recently sent notification of a tier.

        Global across locations. Rows that were never sent do not count.

        Args:
            severity: Tier to look up.

        Returns:
            Latest ``sent_at`` or None if the tier was never sent.
        """
        sql = """
            SELECT MAX(sent_at) FROM alert_notifications
            WHERE status = $1 AND sent_at IS NOT NULL
        """
        return await self._db.fetchval(sql, severity.value)

    async def enqueue_for_active_subscribers(
        self,
        classification: AlertClassification,
    ) -> int:
        """
        Insert one PENDING delivery per active subscriber.

        A single INSERT ... SELECT, so the subscriber snapshot and the
        inserted rows come from the same statement.

        Args:
            classification: Approved alert to fan out.

        Returns:
            Number of rows created.
        """
        sql = """
            INSERT INTO alert_notifications
                (subscriber_id, alert_type, water_level_cm, status,
                 channel, message, delivery_status)
            SELECT id, $1, $2, $3, 'SMS', $4, 0
            FROM sms_subscribers
            WHERE is_active = TRUE
        """
        status = await self._db.execute(
            sql,
            classification.alert_type,
            float(classification.level),
            classification.severity.value,
            classification.message,
        )
        return affected_rows(status)

    async def claim_next(self) -> ClaimedDelivery | None:
        """
        Claim the lowest-id PENDING delivery.

        Runs in one serializable transaction: the candidate row is locked
        with a blocking ``FOR UPDATE`` and moved to CLAIMED before commit,
        then re-read joined with its subscriber's phone number. Contention
        surfaces as an asyncpg error for the caller to map to "no work".

        Returns:
            The claimed delivery, or None if nothing was pending or the
            claimed row's subscriber is no longer active.
        """
        async with self._db.transaction(isolation="serializable") as conn:
            claimed_id = await conn.fetchval(_CLAIM_SQL)
            if claimed_id is None:
                return None

            row = await conn.fetchrow(_FETCH_CLAIMED_SQL, claimed_id)

        if row is None:
            logger.warning(
                "Delivery %s claimed but its subscriber is inactive; "
                "left for the stale-claim sweep",
                claimed_id,
            )
            return None

        return ClaimedDelivery(
            id=row["id"],
            phone_number=row["phone_number"],
            message=row["message"],
            delivery_status=DeliveryStatus(row["delivery_status"]),
            attempt_count=row["attempt_count"],
        )

    async def acknowledge(self, delivery_id: int) -> bool:
        """
        Mark a CLAIMED delivery as SENT.

        Args:
            delivery_id: Delivery to acknowledge.

        Returns:
            True if the row moved to SENT, False if it was not CLAIMED.
        """
        sql = """
            UPDATE alert_notifications
            SET delivery_status = 1,
                attempt_count = attempt_count + 1,
                sent_at = NOW(),
                error_message = NULL
            WHERE id = $1 AND delivery_status = 2
            RETURNING id
        """
        result = await self._db.fetchval(sql, delivery_id)
        return result is not None

    async def release(
        self,
        delivery_id: int,
        error: str | None,
        max_attempts: int,
    ) -> ReleaseResult:
        """
        Return a CLAIMED delivery after a failed send.

        Counts the attempt and puts the row back to PENDING, or FAILED once
        ``max_attempts`` attempts have been made.

        Args:
            delivery_id: Delivery to release.
            error: Failure reason (truncated to the column width).
            max_attempts: Attempts after which the row is abandoned.

        Returns:
            "RELEASED", "FAILED", or "SKIPPED" if the row was not CLAIMED.
        """
        sql = """
            UPDATE alert_notifications
            SET attempt_count = attempt_count + 1,
                error_message = $2,
                claimed_at = NULL,
                delivery_status = CASE
                    WHEN attempt_count + 1 >= $3 THEN 3
                    ELSE 0
                END
            WHERE id = $1 AND delivery_status = 2
            RETURNING delivery_status
        """
        new_status = await self._db.fetchval(
            sql, delivery_id, _truncate(error), max_attempts,
        )
        if new_status is None:
            return "SKIPPED"
        if new_status == DeliveryStatus.FAILED:
            return "FAILED"
        return "RELEASED"

    async def release_stale_claims(
        self,
        older_than_seconds: float,
        max_attempts: int,
    ) -> SweepResult:
        """
        Recover deliveries claimed longer ago than the timeout.

        Rows whose subscriber is still active and that have attempts left
        go back to PENDING; the rest become FAILED.

        Args:
            older_than_seconds: Claim age after which a row is stale.
            max_attempts: Attempts after which the row is abandoned.

        Returns:
            SweepResult with the released and failed ids.
        """
        sql = """
            UPDATE alert_notifications a
            SET attempt_count = a.attempt_count + 1,
                claimed_at = NULL,
                error_message = CASE
                    WHEN s.is_active THEN 'claim expired'
                    ELSE 'subscriber inactive'
                END,
                delivery_status = CASE
                    WHEN NOT s.is_active OR a.attempt_count + 1 >= $2 THEN 3
                    ELSE 0
                END
            FROM sms_subscribers s
            WHERE s.id = a.subscriber_id
              AND a.delivery_status = 2
              AND COALESCE(a.claimed_at, a.created_at)
                  < NOW() - make_interval(secs => $1)
            RETURNING a.id, a.delivery_status
        """
        rows = await self._db.fetch(sql, float(older_than_seconds), max_attempts)

        result = SweepResult()
        for row in rows:
            if row["delivery_status"] == DeliveryStatus.FAILED:
                result.failed_ids.append(row["id"])
            else:
                result.released_ids.append(row["id"])
        result.released = len(result.released_ids)
        result.failed = len(result.failed_ids)
        return result

    async def get_recent(
        self,
        *,
        delivery_status: DeliveryStatus | None = None,
        severity: Severity | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PendingDelivery]:
        """
        Get recent deliveries with optional filtering.

        Args:
            delivery_status: Filter by lifecycle state.
            severity: Filter by tier.
            limit: Maximum rows to return.
            offset: Offset for pagination.

        Returns:
            Deliveries ordered by id descending.
        """
        conditions: list[str] = []
        params: list[Any] = []
        param_idx = 1

        if delivery_status is not None:
            conditions.append(f"delivery_status = ${param_idx}")
            params.append(int(delivery_status))
            param_idx += 1

        if severity is not None:
            conditions.append(f"status = ${param_idx}")
            params.append(severity.value)
            param_idx += 1

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)

        sql = f"""
            SELECT * FROM alert_notifications
            {where_clause}
            ORDER BY id DESC
            LIMIT ${param_idx} OFFSET ${param_idx + 1}
        """
        params.extend([limit, offset])

        rows = await self._db.fetch(sql, *params)
        return [_row_to_delivery(row) for row in rows]

    async def count_by_status(self) -> dict[DeliveryStatus, int]:
        """Row counts per delivery status (absent states count as 0)."""
        sql = """
            SELECT delivery_status, COUNT(*) AS n
            FROM alert_notifications
            GROUP BY delivery_status
        """
        rows = await self._db.fetch(sql)
        counts = {status: 0 for status in DeliveryStatus}
        for row in rows:
            counts[DeliveryStatus(row["delivery_status"])] = row["n"]
        return counts


def _truncate(error: str | None) -> str | None:
    if error is None:
        return None
    return error[:ERROR_MESSAGE_MAX]


def _row_to_delivery(row: Any) -> PendingDelivery:
    """Convert an asyncpg Record to a PendingDelivery."""
    return PendingDelivery(
        id=row["id"],
        subscriber_id=row["subscriber_id"],
        severity=Severity(row["status"]),
        alert_type=row["alert_type"],
        water_level=row["water_level_cm"],
        message=row["message"],
        delivery_status=DeliveryStatus(row["delivery_status"]),
        attempt_count=row.get("attempt_count", 0),
        created_at=row.get("created_at"),
        claimed_at=row.get("claimed_at"),
        sent_at=row.get("sent_at"),
        error_message=row.get("error_message"),
    )
