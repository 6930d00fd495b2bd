# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification service.

Workflow services call the ``notify_*`` helpers after their own commit.
Each stored notification is published as ``notification.created`` so the
realtime layer can push it to the recipient's open sockets.

Example:
    >>> notifier = NotificationService(db)
    >>> await notifier.notify_role("registrar", "Transcript Request",
    ...     "New transcript request from student")
"""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import (
    Notification,
    ParentStudentLink,
    Section,
    TeacherAssignment,
    User,
)
from src.infrastructure.events import EventBus, EventTypes, get_event_bus
from src.models.notification import NotificationResponse

logger = logging.getLogger(__name__)


class NotificationServiceError(Exception):
    """Base exception for notification service errors."""

    pass


class NotificationNotFoundError(NotificationServiceError):
    """Raised when a notification does not exist or belongs to someone else."""

    pass


class NotificationService:
    """Stores notifications and announces them on the event bus."""

    def __init__(self, db: AsyncSession, event_bus: EventBus | None = None) -> None:
        self._db = db
        self._event_bus = event_bus or get_event_bus()

    async def notify_users(
        self,
        user_ids: Iterable[str],
        title: str,
        message: str,
        type: str = "info",
        sender_id: str | None = None,
        link: str | None = None,
    ) -> list[Notification]:
        """Create one notification per distinct recipient."""
        recipients = list(dict.fromkeys(uid for uid in user_ids if uid))
        if not recipients:
            return []

        notifications = [
            Notification(
                recipient_id=recipient_id,
                sender_id=sender_id,
                title=title,
                message=message,
                type=type,
                link=link,
                is_read=False,
            )
            for recipient_id in recipients
        ]
        self._db.add_all(notifications)
        await self._db.commit()

        for notification in notifications:
            await self._event_bus.publish(
                EventTypes.Notification.CREATED,
                {
                    "recipient_id": notification.recipient_id,
                    "notification": NotificationResponse.model_validate(notification).model_dump(
                        mode="json"
                    ),
                },
            )

        logger.debug("Created %d notifications: %s", len(notifications), title)
        return notifications

    async def notify_user(self, user_id: str, title: str, message: str, **kwargs) -> Notification | None:
        created = await self.notify_users([user_id], title, message, **kwargs)
        return created[0] if created else None

    async def notify_role(self, role: str, title: str, message: str, **kwargs) -> list[Notification]:
        """Notify every active user holding ``role``."""
        result = await self._db.execute(
            select(User.id).where(User.role == role, User.is_active.is_(True))
        )
        return await self.notify_users(result.scalars().all(), title, message, **kwargs)

    async def notify_section_students(
        self, section_id: str, title: str, message: str, **kwargs
    ) -> list[Notification]:
        result = await self._db.execute(
            select(User.id).where(
                User.section_id == section_id,
                User.role == "student",
                User.is_active.is_(True),
            )
        )
        return await self.notify_users(result.scalars().all(), title, message, **kwargs)

    async def notify_student_parents(
        self, student_id: str, title: str, message: str, **kwargs
    ) -> list[Notification]:
        return await self.notify_users(
            await self.get_parent_ids(student_id), title, message, **kwargs
        )

    async def notify_section_teachers(
        self, section_id: str, title: str, message: str, **kwargs
    ) -> list[Notification]:
        return await self.notify_users(
            await self.get_section_teacher_ids(section_id), title, message, **kwargs
        )

    async def get_parent_ids(self, student_id: str) -> list[str]:
        result = await self._db.execute(
            select(ParentStudentLink.parent_id).where(ParentStudentLink.student_id == student_id)
        )
        return list(result.scalars().all())

    async def get_section_teacher_ids(self, section_id: str) -> list[str]:
        """Adviser plus every teacher assigned to the section."""
        result = await self._db.execute(
            select(TeacherAssignment.teacher_id).where(TeacherAssignment.section_id == section_id)
        )
        teacher_ids = list(result.scalars().all())
        adviser_id = await self._db.scalar(select(Section.adviser_id).where(Section.id == section_id))
        if adviser_id:
            teacher_ids.insert(0, adviser_id)
        return list(dict.fromkeys(teacher_ids))

    async def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.recipient_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        count = await self._db.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return count or 0

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one of the user's notifications read.

        Raises:
            NotificationNotFoundError: If it does not exist or is not the user's.
        """
        notification = await self._get_owned(notification_id, user_id)
        notification.is_read = True
        await self._db.commit()
        await self._db.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        result = await self._db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self._db.commit()
        return result.rowcount or 0

    async def delete(self, notification_id: str, user_id: str) -> None:
        await self._get_owned(notification_id, user_id)
        await self._db.execute(delete(Notification).where(Notification.id == notification_id))
        await self._db.commit()

    async def _get_owned(self, notification_id: str, user_id: str) -> Notification:
        notification = await self._db.get(Notification, notification_id)
        if notification is None or notification.recipient_id != user_id:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        return notification
