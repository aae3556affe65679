"""
Health check endpoint with infrastructure checks.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from watersense.alerts.repository import NotificationRepository
from watersense.api.dependencies import (
    get_database,
    get_notification_repository,
    get_timeseries_store,
)
from watersense.api.models import ComponentHealth, HealthResponse
from watersense.config.settings import get_settings
from watersense.storage.database import Database
from watersense.timeseries.store import WaterLevelStore

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check(check_fn) -> ComponentHealth:
    """Run a health check and measure latency."""
    start = time.perf_counter()
    try:
        healthy = await check_fn()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the database, the time-series store and the delivery backlog.",
)
async def health_check(
    db: Database = Depends(get_database),
    store: WaterLevelStore = Depends(get_timeseries_store),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
) -> HealthResponse:
    """
    Status logic:
    - unhealthy: database is down (nothing can be enqueued or claimed)
    - degraded: time-series store is down (smoothing falls back to raw values)
    - healthy: all components operational
    """
    settings = get_settings()

    components = {
        "database": await _check(db.health_check),
        "timeseries": await _check(store.health_check),
    }

    deliveries: dict[str, int] = {}
    if components["database"].status == "healthy":
        try:
            counts = await notification_repo.count_by_status()
            deliveries = {state.name.lower(): n for state, n in counts.items()}
        except Exception as e:
            logger.warning("Failed to count deliveries", error=str(e))

    if components["database"].status == "unhealthy":
        status = "unhealthy"
    elif components["timeseries"].status == "unhealthy":
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        components=components,
        deliveries=deliveries,
        sms_disabled=settings.sms_disabled,
    )
