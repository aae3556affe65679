"""Delivery queue over the alert_notifications table.

Any number of pollers (the SMS gateway device over HTTP, or in-process
``DeliveryWorker`` instances) call ``claim_next_delivery`` concurrently;
the row lock taken inside the claim transaction is the only coordination.
Storage failures never escape: a failed claim is "no work" and a failed
acknowledgement is "SKIPPED".
"""

import asyncio
import logging

import asyncpg
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from watersense.alerts.repository import NotificationRepository
from watersense.alerts.schemas import (
    AckResult,
    ClaimedDelivery,
    ReleaseResult,
    SweepResult,
)
from watersense.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    asyncio.TimeoutError,
    OSError,
    RuntimeError,
)


class DeliveryConfig(BaseSettings):
    """Configuration for delivery claiming, recovery and dispatch."""

    model_config = SettingsConfigDict(
        env_prefix="DELIVERY_",
        case_sensitive=False,
        extra="ignore",
    )

    claim_timeout_seconds: float = Field(
        default=300.0,
        ge=1.0,
        description="Age after which a CLAIMED row is considered abandoned",
    )
    claim_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Claim transactions tried per poll when losing serialization races",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Send attempts before a delivery is marked FAILED",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        gt=0.0,
        description="Base delay between polls when the queue is empty",
    )
    max_poll_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Upper bound for the idle backoff",
    )
    sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="How often the dispatch worker runs the stale-claim sweep",
    )
    gateway_url: str | None = Field(
        default=None,
        description="HTTP SMS gateway endpoint used by the dispatch worker",
    )
    gateway_token: str | None = Field(
        default=None,
        description="Bearer token for the SMS gateway",
    )
    gateway_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Per-request timeout for the SMS gateway",
    )
    circuit_breaker_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before circuit opens",
    )
    circuit_breaker_recovery_seconds: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds before circuit breaker tries a recovery send",
    )


class DeliveryQueue:
    """Claim, acknowledge, release and recover pending deliveries."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        config: DeliveryConfig | None = None,
        sms_disabled: bool = False,
    ) -> None:
        self._repo = notification_repo
        self._config = config or DeliveryConfig()
        self._sms_disabled = sms_disabled

    @property
    def config(self) -> DeliveryConfig:
        return self._config

    async def claim_next_delivery(self) -> ClaimedDelivery | None:
        """
        Claim at most one pending delivery.

        Each attempt runs in a fresh transaction, so a poller that queued
        behind another's row lock retries against the next pending row.

        Returns:
            The claimed delivery, or None for "no work" (empty queue, kill
            switch set, contention on every attempt or storage failure).
        """
        metrics = get_metrics()

        if self._sms_disabled:
            logger.info("SMS disabled, not claiming deliveries")
            metrics.record_claim("disabled")
            return None

        attempts = self._config.claim_attempts
        for attempt in range(1, attempts + 1):
            try:
                claimed = await self._repo.claim_next()
                break
            except asyncpg.SerializationError as e:
                metrics.record_claim("contention")
                if attempt == attempts:
                    logger.info(
                        "Claim lost %d serialization races, reporting no work: %s",
                        attempts, e,
                    )
                    return None
                logger.debug("Claim attempt %d lost a serialization race, retrying", attempt)
            except STORAGE_ERRORS as e:
                logger.warning("Claim failed, reporting no work: %s", e)
                metrics.record_claim("error")
                return None

        if claimed is None:
            metrics.record_claim("empty")
            return None

        logger.info(
            "Delivery %s claimed (attempt %d)", claimed.id, claimed.attempt_count + 1,
        )
        metrics.record_claim("claimed")
        return claimed

    async def acknowledge_delivery(self, delivery_id: int) -> AckResult:
        """
        Record a successful send.

        Args:
            delivery_id: Delivery previously returned by a claim.

        Returns:
            "SENT" if the row moved CLAIMED -> SENT, otherwise "SKIPPED".
        """
        try:
            updated = await self._repo.acknowledge(delivery_id)
        except STORAGE_ERRORS as e:
            logger.warning("Acknowledge failed for delivery %s: %s", delivery_id, e)
            updated = False

        result: AckResult = "SENT" if updated else "SKIPPED"
        if not updated:
            logger.info("Acknowledge skipped for delivery %s (not claimed)", delivery_id)
        get_metrics().record_ack(result)
        return result

    async def release_delivery(
        self,
        delivery_id: int,
        error: str | None = None,
    ) -> ReleaseResult:
        """
        Record a failed send and hand the delivery back.

        Args:
            delivery_id: Delivery previously returned by a claim.
            error: Failure reason.

        Returns:
            "RELEASED" (back to PENDING), "FAILED" (attempts exhausted) or
            "SKIPPED" (row was not CLAIMED, or the update failed).
        """
        try:
            result = await self._repo.release(
                delivery_id, error, self._config.max_attempts,
            )
        except STORAGE_ERRORS as e:
            logger.warning("Release failed for delivery %s: %s", delivery_id, e)
            result = "SKIPPED"

        if result == "FAILED":
            logger.warning(
                "Delivery %s abandoned after %d attempts: %s",
                delivery_id, self._config.max_attempts, error,
            )
        get_metrics().record_ack(result)
        return result

    async def sweep_stale_claims(self) -> SweepResult:
        """
        Revert or fail deliveries whose claim has outlived the timeout.

        Returns:
            SweepResult (empty on storage failure).
        """
        try:
            result = await self._repo.release_stale_claims(
                self._config.claim_timeout_seconds, self._config.max_attempts,
            )
        except STORAGE_ERRORS as e:
            logger.warning("Stale-claim sweep failed: %s", e)
            return SweepResult()

        if result.total:
            logger.info(
                "Stale-claim sweep: %d released, %d failed",
                result.released, result.failed,
            )
        get_metrics().record_sweep(result.released, result.failed)
        return result
