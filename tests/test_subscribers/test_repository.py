"""Tests for SubscriberRepository with mocked Database."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from watersense.subscribers.repository import SubscriberRepository
from watersense.subscribers.schemas import (
    DEFAULT_LOCATION,
    Subscriber,
    SubscribeResult,
    is_valid_phone_number,
)


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def repo(mock_db):
    return SubscriberRepository(mock_db)


def _make_db_row(**overrides):
    row = {
        "id": 5,
        "phone_number": "09171234567",
        "location": DEFAULT_LOCATION,
        "is_active": True,
        "created_at": datetime(2026, 6, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 6, 1, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


class TestPhoneValidation:
    @pytest.mark.parametrize("number", ["09171234567", "09998887777"])
    def test_valid(self, number):
        assert is_valid_phone_number(number)

    @pytest.mark.parametrize(
        "number",
        ["", "9171234567", "+639171234567", "0917123456", "091712345678", "0917-123-4567"],
    )
    def test_invalid(self, number):
        assert not is_valid_phone_number(number)

    def test_subscriber_rejects_bad_number(self):
        with pytest.raises(ValueError, match="Invalid Philippine mobile number"):
            Subscriber(id=1, phone_number="12345")


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_new_number_is_created(self, repo, mock_db):
        mock_db.fetchrow.return_value = {"id": 5, "inserted": True}

        result = await repo.subscribe("09171234567")

        assert result == SubscribeResult("created", 5)
        assert result.message == "Successfully subscribed"
        _, phone, location = mock_db.fetchrow.await_args.args
        assert (phone, location) == ("09171234567", DEFAULT_LOCATION)

    @pytest.mark.asyncio
    async def test_inactive_number_is_reactivated(self, repo, mock_db):
        mock_db.fetchrow.return_value = {"id": 5, "inserted": False}

        result = await repo.subscribe("09171234567", "Purok 3")

        assert result.outcome == "reactivated"
        assert result.message == "Subscription reactivated"

    @pytest.mark.asyncio
    async def test_active_number_is_already_subscribed(self, repo, mock_db):
        mock_db.fetchrow.side_effect = [None, _make_db_row()]

        result = await repo.subscribe("09171234567")

        assert result == SubscribeResult("already_subscribed", 5)
        assert result.message == "Already subscribed"

    @pytest.mark.asyncio
    async def test_invalid_number_raises_before_query(self, repo, mock_db):
        with pytest.raises(ValueError):
            await repo.subscribe("12345")
        mock_db.fetchrow.assert_not_awaited()


class TestUnsubscribe:
    @pytest.mark.asyncio
    async def test_deactivates(self, repo, mock_db):
        mock_db.execute.return_value = "UPDATE 1"
        assert await repo.unsubscribe("09171234567") is True
        assert "is_active = FALSE" in mock_db.execute.await_args.args[0]

    @pytest.mark.asyncio
    async def test_unknown_or_inactive(self, repo, mock_db):
        mock_db.execute.return_value = "UPDATE 0"
        assert await repo.unsubscribe("09171234567") is False


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_by_phone(self, repo, mock_db):
        mock_db.fetchrow.return_value = _make_db_row(is_active=False)

        subscriber = await repo.get_by_phone("09171234567")

        assert subscriber.id == 5
        assert subscriber.is_active is False
        assert subscriber.to_dict()["created_at"] == "2026-06-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_get_by_phone_missing(self, repo, mock_db):
        mock_db.fetchrow.return_value = None
        assert await repo.get_by_phone("09171234567") is None
