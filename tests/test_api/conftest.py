"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from watersense.alerts.queue import DeliveryQueue
from watersense.alerts.repository import NotificationRepository
from watersense.api.app import create_app
from watersense.api.auth import verify_api_key
from watersense.api.dependencies import (
    get_calibration_repository,
    get_database,
    get_delivery_queue,
    get_notification_repository,
    get_reading_service,
    get_subscriber_repository,
    get_timeseries_store,
)
from watersense.calibration.repository import CalibrationRepository
from watersense.readings.service import ReadingService
from watersense.storage.database import Database
from watersense.subscribers.repository import SubscriberRepository
from watersense.timeseries.store import WaterLevelStore


@pytest.fixture
def mock_reading_service():
    return AsyncMock(spec=ReadingService)


@pytest.fixture
def mock_queue():
    queue = AsyncMock(spec=DeliveryQueue)
    queue.claim_next_delivery.return_value = None
    return queue


@pytest.fixture
def mock_store():
    store = AsyncMock(spec=WaterLevelStore)
    store.health_check.return_value = True
    store.latest_level.return_value = None
    return store


@pytest.fixture
def mock_subscriber_repo():
    return AsyncMock(spec=SubscriberRepository)


@pytest.fixture
def mock_calibration_repo():
    return AsyncMock(spec=CalibrationRepository)


@pytest.fixture
def mock_database():
    db = AsyncMock(spec=Database)
    db.health_check.return_value = True
    return db


@pytest.fixture
def mock_notification_repo():
    return AsyncMock(spec=NotificationRepository)


@pytest.fixture
def app(
    mock_reading_service,
    mock_queue,
    mock_store,
    mock_subscriber_repo,
    mock_calibration_repo,
    mock_database,
    mock_notification_repo,
):
    app = create_app()
    app.dependency_overrides[get_reading_service] = lambda: mock_reading_service
    app.dependency_overrides[get_delivery_queue] = lambda: mock_queue
    app.dependency_overrides[get_timeseries_store] = lambda: mock_store
    app.dependency_overrides[get_subscriber_repository] = lambda: mock_subscriber_repo
    app.dependency_overrides[get_calibration_repository] = lambda: mock_calibration_repo
    app.dependency_overrides[get_database] = lambda: mock_database
    app.dependency_overrides[get_notification_repository] = lambda: mock_notification_repo
    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
