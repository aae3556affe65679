"""
Dispatch worker - claims pending deliveries and sends them as SMS.

Runs as a standalone service (``watersense dispatch``) that:
1. Claims one delivery at a time through DeliveryQueue
2. Sends it through the configured channel
3. Acknowledges on success or releases with the error on failure
4. Periodically sweeps stale claims back to PENDING

Several workers (and the HTTP poll endpoint) may run side by side; the
claim transaction keeps them from ever holding the same row.
"""

import asyncio
import time

import structlog

from watersense.alerts.backoff import ExponentialBackoff
from watersense.alerts.channels import CircuitBreaker, NotificationChannel
from watersense.alerts.queue import DeliveryConfig, DeliveryQueue
from watersense.observability.logging import log_context

logger = structlog.get_logger(__name__)


class DeliveryWorker:
    """
    Worker that drains the delivery queue through a notification channel.

    Usage:
        worker = DeliveryWorker(queue, channel)
        await worker.start()  # Runs until stop() is called
    """

    def __init__(
        self,
        queue: DeliveryQueue,
        channel: NotificationChannel,
        config: DeliveryConfig | None = None,
    ):
        """
        Initialize the dispatch worker.

        Args:
            queue: Delivery queue to claim from
            channel: Channel used to send (wrapped in a CircuitBreaker if bare)
            config: Delivery configuration (defaults to the queue's)
        """
        self._queue = queue
        self._config = config or queue.config

        if isinstance(channel, CircuitBreaker):
            self._channel = channel
        else:
            self._channel = CircuitBreaker(
                channel=channel,
                failure_threshold=self._config.circuit_breaker_threshold,
                recovery_timeout=self._config.circuit_breaker_recovery_seconds,
            )

        self._backoff = ExponentialBackoff(
            base_delay=self._config.poll_interval_seconds,
            max_delay=self._config.max_poll_interval_seconds,
        )
        self._running = False
        self._last_sweep: float | None = None
        self._stats = {"sent": 0, "released": 0, "failed": 0, "skipped": 0}

    @property
    def channel(self) -> CircuitBreaker:
        return self._channel

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    async def start(self) -> None:
        """
        Start the dispatch loop.

        Runs until stop() is called or the task is cancelled.
        """
        self._running = True
        logger.info("Starting dispatch worker", channel=self._channel.name)

        try:
            while self._running:
                await self._maybe_sweep()
                worked = await self.process_one()
                if worked:
                    self._backoff.reset()
                else:
                    await asyncio.sleep(self._backoff.next_delay())
        except asyncio.CancelledError:
            logger.info("Dispatch worker cancelled")
        finally:
            logger.info("Dispatch worker stopped", **self._stats)

    async def stop(self) -> None:
        """Stop the dispatch worker after the current delivery."""
        logger.info("Stopping dispatch worker")
        self._running = False

    async def process_one(self) -> bool:
        """
        Claim and send a single delivery.

        Returns:
            True if a delivery was claimed (whatever the send outcome).
        """
        if not self._channel.allows_send():
            return False

        delivery = await self._queue.claim_next_delivery()
        if delivery is None:
            return False

        with log_context(delivery_id=delivery.id):
            try:
                sent = await self._channel.send(delivery)
                error = None if sent else f"{self._channel.name} rejected the message"
            except Exception as e:
                sent = False
                error = str(e)

            if sent:
                result = await self._queue.acknowledge_delivery(delivery.id)
                self._stats["sent" if result == "SENT" else "skipped"] += 1
                logger.info("Delivery sent", result=result)
            else:
                result = await self._queue.release_delivery(delivery.id, error)
                key = {"RELEASED": "released", "FAILED": "failed"}.get(result, "skipped")
                self._stats[key] += 1
                logger.warning("Delivery not sent", result=result, error=error)

        return True

    async def _maybe_sweep(self) -> None:
        now = time.monotonic()
        if (
            self._last_sweep is not None
            and now - self._last_sweep < self._config.sweep_interval_seconds
        ):
            return
        self._last_sweep = now
        await self._queue.sweep_stale_claims()
