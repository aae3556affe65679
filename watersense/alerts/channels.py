"""SMS delivery channels for claimed deliveries.

Provides an ABC for channels, an HTTP SMS gateway implementation, and a
CircuitBreaker decorator that stops hammering a gateway that keeps failing.
"""

import enum
import logging
import time
from abc import ABC, abstractmethod

import httpx

from watersense.alerts.schemas import ClaimedDelivery

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Abstract base for SMS delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'sms_gateway')."""

    @abstractmethod
    async def send(self, delivery: ClaimedDelivery) -> bool:
        """Deliver one SMS.

        Args:
            delivery: Claimed delivery with phone number and body.

        Returns:
            True if the gateway accepted the message, False otherwise.
        """


class SmsGatewayChannel(NotificationChannel):
    """Posts SMS as JSON to an HTTP gateway.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling).
    Payload: ``{"id", "to", "message"}``; any 2xx counts as accepted.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "sms_gateway"

    def _build_payload(self, delivery: ClaimedDelivery) -> dict:
        return {
            "id": delivery.id,
            "to": delivery.phone_number,
            "message": delivery.message,
        }

    async def send(self, delivery: ClaimedDelivery) -> bool:
        payload = self._build_payload(delivery)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers=self._headers,
                )
                if resp.is_success:
                    return True
                logger.warning(
                    "SMS gateway %s returned %d for delivery %s",
                    self._url, resp.status_code, delivery.id,
                )
                return False
        except httpx.TimeoutException:
            logger.warning(
                "SMS gateway %s timed out for delivery %s",
                self._url, delivery.id,
            )
            return False
        except httpx.HTTPError as e:
            logger.warning(
                "SMS gateway %s failed for delivery %s: %s",
                self._url, delivery.id, e,
            )
            return False


class CircuitState(enum.Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(NotificationChannel):
    """Wraps a NotificationChannel with circuit breaker protection.

    State machine: CLOSED -> OPEN -> HALF_OPEN -> CLOSED.

    - CLOSED: sends pass through; consecutive failures are counted.
    - OPEN: sends are refused until ``recovery_timeout`` has passed.
    - HALF_OPEN: one trial send; success closes, failure re-opens.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
    ) -> None:
        self._channel = channel
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._last_failure_time: float = 0.0

    @property
    def name(self) -> str:
        return self._channel.name

    @property
    def state(self) -> CircuitState:
        return self._state

    def allows_send(self) -> bool:
        """Whether a send would currently be attempted (may move OPEN -> HALF_OPEN)."""
        if self._state != CircuitState.OPEN:
            return True
        if time.monotonic() - self._last_failure_time >= self._recovery_timeout:
            self._state = CircuitState.HALF_OPEN
            logger.info(
                "Circuit breaker %s: OPEN -> HALF_OPEN (recovery trial)", self.name,
            )
            return True
        return False

    async def send(self, delivery: ClaimedDelivery) -> bool:
        if not self.allows_send():
            logger.debug(
                "Circuit breaker %s: OPEN, refusing delivery %s",
                self.name, delivery.id,
            )
            return False

        try:
            success = await self._channel.send(delivery)
        except Exception:
            self._record_failure()
            raise

        if success:
            if self._state == CircuitState.HALF_OPEN:
                logger.info(
                    "Circuit breaker %s: HALF_OPEN -> CLOSED (trial succeeded)",
                    self.name,
                )
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            return True

        self._record_failure()
        return False

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        self._last_failure_time = time.monotonic()

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker %s: HALF_OPEN -> OPEN (trial failed)", self.name,
            )
        elif self._consecutive_failures >= self._failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker %s: CLOSED -> OPEN after %d failures",
                self.name, self._consecutive_failures,
            )
