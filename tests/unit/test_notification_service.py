# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for NotificationService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.notification.service import NotificationNotFoundError, NotificationService
from src.infrastructure.database.models import Notification
from src.infrastructure.events import EventBus, EventTypes


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def service(mock_db: AsyncMock, bus: EventBus) -> NotificationService:
    def assign_ids(notifications: list[Notification]) -> None:
        for index, notification in enumerate(notifications):
            notification.id = f"n{index}"
            notification.created_at = datetime(2025, 6, 1, tzinfo=timezone.utc)

    mock_db.add_all.side_effect = assign_ids
    return NotificationService(mock_db, event_bus=bus)


class TestNotify:
    """Tests for creating notifications."""

    async def test_recipients_are_deduplicated(
        self, service: NotificationService, mock_db: AsyncMock
    ) -> None:
        """Test one notification per distinct recipient."""
        created = await service.notify_users(["u1", "u2", "u1", None], "Grades", "Posted")

        assert [n.recipient_id for n in created] == ["u1", "u2"]
        assert all(n.is_read is False for n in created)
        mock_db.commit.assert_awaited_once()

    async def test_no_recipients(self, service: NotificationService, mock_db: AsyncMock) -> None:
        """Test that an empty audience writes nothing."""
        assert await service.notify_users([], "Grades", "Posted") == []
        assert await service.notify_user("", "Grades", "Posted") is None

        mock_db.commit.assert_not_awaited()

    async def test_published_on_the_bus(self, service: NotificationService, bus: EventBus) -> None:
        """Test that each stored notification is announced."""
        handler = AsyncMock()
        bus.subscribe(EventTypes.Notification.CREATED, handler)

        await service.notify_user("u1", "Counseling", "Session booked", type="guidance", sender_id="g1")

        event = handler.await_args.args[0]
        assert event.payload["recipient_id"] == "u1"
        assert event.payload["notification"]["type"] == "guidance"
        assert event.payload["notification"]["sender_id"] == "g1"
        assert event.payload["notification"]["created_at"].startswith("2025-06-01")

    async def test_notify_role(
        self, service: NotificationService, mock_db: AsyncMock, make_result
    ) -> None:
        """Test that role fan-out uses the active users of the role."""
        mock_db.execute.return_value = make_result(items=["r1", "r2"])

        created = await service.notify_role("registrar", "Transcript Request", "New request")

        assert [n.recipient_id for n in created] == ["r1", "r2"]

    async def test_section_teachers_start_with_adviser(
        self, service: NotificationService, mock_db: AsyncMock, make_result
    ) -> None:
        """Test the adviser is listed first and only once."""
        mock_db.execute.return_value = make_result(items=["t2", "adviser"])
        mock_db.scalar.return_value = "adviser"

        assert await service.get_section_teacher_ids("s1") == ["adviser", "t2"]


class TestInbox:
    """Tests for reading and managing the inbox."""

    async def test_mark_read_foreign_notification(
        self, service: NotificationService, mock_db: AsyncMock
    ) -> None:
        """Test that other users' notifications look missing."""
        mock_db.get.return_value = MagicMock(recipient_id="someone-else")

        with pytest.raises(NotificationNotFoundError):
            await service.mark_read("n1", "u1")

    async def test_delete_missing(self, service: NotificationService, mock_db: AsyncMock) -> None:
        """Test deleting a notification that does not exist."""
        mock_db.get.return_value = None

        with pytest.raises(NotificationNotFoundError):
            await service.delete("n1", "u1")

        mock_db.execute.assert_not_awaited()

    async def test_mark_all_read_returns_rowcount(
        self, service: NotificationService, mock_db: AsyncMock, make_result
    ) -> None:
        """Test the bulk update count."""
        mock_db.execute.return_value = make_result(items=[1, 2, 3])

        assert await service.mark_all_read("u1") == 3

    async def test_unread_count_defaults_to_zero(
        self, service: NotificationService, mock_db: AsyncMock
    ) -> None:
        """Test a missing count."""
        mock_db.scalar.return_value = None

        assert await service.unread_count("u1") == 0
