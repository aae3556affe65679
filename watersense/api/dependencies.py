"""
Dependency injection for FastAPI endpoints.
"""

from watersense.alerts.config import AlertConfig
from watersense.alerts.queue import DeliveryConfig, DeliveryQueue
from watersense.alerts.repository import NotificationRepository
from watersense.alerts.service import AlertService
from watersense.alerts.smoothing import SmoothingService
from watersense.calibration.repository import CalibrationRepository
from watersense.config.settings import get_settings
from watersense.readings.service import ReadingService
from watersense.storage.database import Database
from watersense.subscribers.repository import SubscriberRepository
from watersense.timeseries.store import WaterLevelStore

# Global service instances (initialized on first request)
_database: Database | None = None
_timeseries_store: WaterLevelStore | None = None
_alert_service: AlertService | None = None
_delivery_queue: DeliveryQueue | None = None
_reading_service: ReadingService | None = None


async def get_database() -> Database:
    """Get the shared database, connecting on first use."""
    global _database

    if _database is None:
        database = Database()
        await database.connect()
        _database = database

    return _database


async def get_timeseries_store() -> WaterLevelStore:
    """Get the shared InfluxDB store."""
    global _timeseries_store

    if _timeseries_store is None:
        _timeseries_store = WaterLevelStore()

    return _timeseries_store


async def get_notification_repository() -> NotificationRepository:
    return NotificationRepository(await get_database())


async def get_subscriber_repository() -> SubscriberRepository:
    return SubscriberRepository(await get_database())


async def get_calibration_repository() -> CalibrationRepository:
    return CalibrationRepository(await get_database())


async def get_alert_service() -> AlertService:
    """
    Get alert service instance.

    Creates a singleton wired to the shared database and store.
    """
    global _alert_service

    if _alert_service is None:
        config = AlertConfig()
        _alert_service = AlertService(
            config=config,
            notification_repo=await get_notification_repository(),
            smoothing=SmoothingService(await get_timeseries_store(), config),
        )

    return _alert_service


async def get_delivery_queue() -> DeliveryQueue:
    """Get the delivery queue, honouring the SMS kill switch."""
    global _delivery_queue

    if _delivery_queue is None:
        _delivery_queue = DeliveryQueue(
            await get_notification_repository(),
            config=DeliveryConfig(),
            sms_disabled=get_settings().sms_disabled,
        )

    return _delivery_queue


async def get_reading_service() -> ReadingService:
    global _reading_service

    if _reading_service is None:
        _reading_service = ReadingService(
            store=await get_timeseries_store(),
            alert_service=await get_alert_service(),
        )

    return _reading_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _timeseries_store, _alert_service, _delivery_queue, _reading_service

    _reading_service = None
    _delivery_queue = None
    _alert_service = None

    if _timeseries_store is not None:
        await _timeseries_store.close()
        _timeseries_store = None

    if _database is not None:
        await _database.close()
        _database = None
