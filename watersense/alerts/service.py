"""Alert service running the evaluation pipeline for one reading.

smoothing -> classification -> cooldown gate -> enqueue. Classification and
cooldown arithmetic are delegated to stateless functions in ``triggers.py``;
cooldown history is always read back from the delivery table so several
service instances agree on it.
"""

import logging
import time
from datetime import datetime, timezone

from watersense.alerts.config import AlertConfig
from watersense.alerts.repository import NotificationRepository
from watersense.alerts.schemas import EvaluationResult, Severity
from watersense.alerts.smoothing import SmoothingService
from watersense.alerts.triggers import classify_level, cooldown_for
from watersense.observability.logging import log_context
from watersense.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class AlertService:
    """Orchestrator for smoothing, classification, cooldown and enqueue.

    ``evaluate_reading`` never raises: every failure is logged and folded
    into an ``EvaluationResult`` with outcome ``failed``.
    """

    def __init__(
        self,
        config: AlertConfig,
        notification_repo: NotificationRepository,
        smoothing: SmoothingService,
    ) -> None:
        self._config = config
        self._notification_repo = notification_repo
        self._smoothing = smoothing

    async def _cooldown_allows(
        self,
        severity: Severity,
        now: datetime | None = None,
    ) -> bool:
        """
        Check whether a tier may alert again.

        Compares the seconds since the last sent notification of the same
        tier (any location) against the tier's cooldown.

        Args:
            severity: Candidate tier.
            now: Evaluation instant (UTC now if omitted).

        Returns:
            True if no prior notification exists or the window has elapsed.
        """
        last_sent = await self._notification_repo.last_sent_at(severity)
        if last_sent is None:
            return True

        now = now or datetime.now(timezone.utc)
        if last_sent.tzinfo is None:
            last_sent = last_sent.replace(tzinfo=timezone.utc)

        elapsed = (now - last_sent).total_seconds()
        return elapsed >= cooldown_for(severity, self._config)

    async def evaluate_reading(
        self,
        location_id: str,
        value: float,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """
        Run the full pipeline for one reading.

        Args:
            location_id: Location that produced the reading.
            value: Raw (calibrated, clamped) level in cm.
            now: Evaluation instant, for the cooldown check.

        Returns:
            EvaluationResult describing what happened.
        """
        with log_context(location_id=str(location_id)):
            start = time.perf_counter()
            result = EvaluationResult(
                location_id=str(location_id), raw_value=value, outcome="no_alert",
            )

            try:
                level = await self._smoothing.smooth(str(location_id), value)
                result.level = level

                classification = classify_level(level, self._config)
                if classification is None:
                    return result

                result.severity = classification.severity

                if not await self._cooldown_allows(classification.severity, now):
                    logger.debug(
                        "Alert suppressed by cooldown: %s at %s cm (location %s)",
                        classification.severity.value, level, location_id,
                    )
                    result.outcome = "suppressed"
                    return result

                enqueued = await self._notification_repo.enqueue_for_active_subscribers(
                    classification,
                )
                result.enqueued = enqueued
                result.outcome = "enqueued"
                get_metrics().record_enqueued(classification.severity.value, enqueued)

                logger.info(
                    "Alert enqueued: %s at %s cm (location %s), %d deliveries",
                    classification.severity.value, level, location_id, enqueued,
                )
                return result

            except Exception as e:
                logger.error(
                    "Alert evaluation failed for location %s: %s", location_id, e,
                )
                result.outcome = "failed"
                result.error = str(e)
                return result

            finally:
                get_metrics().record_evaluation(
                    result.outcome, latency=time.perf_counter() - start,
                )
