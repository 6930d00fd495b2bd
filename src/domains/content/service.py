# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcements, news and school events.

Public readers get every item newest first; administrators create,
update and delete them.
"""

import logging
from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Announcement, NewsItem, SchoolEvent
from src.infrastructure.database.models.base import Base
from src.models.content import (
    AnnouncementCreateRequest,
    EventCreateRequest,
    NewsCreateRequest,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Columns that may not be cleared by an update
_REQUIRED_FIELDS = frozenset({"title", "content", "event_date", "date_posted"})


class ContentServiceError(Exception):
    """Base exception for content service errors."""

    pass


class ContentNotFoundError(ContentServiceError):
    pass


class ContentService:
    """CRUD for public-facing school content."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # Announcements

    async def list_announcements(self, limit: int | None = None) -> list[Announcement]:
        return await self._list(Announcement, Announcement.created_at, limit)

    async def create_announcement(
        self, request: AnnouncementCreateRequest, created_by: str
    ) -> Announcement:
        announcement = Announcement(**request.model_dump(), created_by=created_by)
        return await self._add(announcement)

    async def update_announcement(self, announcement_id: str, request: BaseModel) -> Announcement:
        return await self._update(Announcement, announcement_id, request)

    async def delete_announcement(self, announcement_id: str) -> None:
        await self._delete(Announcement, announcement_id)

    # News

    async def list_news(self, limit: int | None = None) -> list[NewsItem]:
        return await self._list(NewsItem, NewsItem.date_posted, limit)

    async def create_news(self, request: NewsCreateRequest) -> NewsItem:
        data = request.model_dump()
        data["date_posted"] = ensure_utc(data.get("date_posted")) or utc_now()
        return await self._add(NewsItem(**data))

    async def update_news(self, news_id: str, request: BaseModel) -> NewsItem:
        return await self._update(NewsItem, news_id, request)

    async def delete_news(self, news_id: str) -> None:
        await self._delete(NewsItem, news_id)

    # Events

    async def list_events(self, limit: int | None = None) -> list[SchoolEvent]:
        return await self._list(SchoolEvent, SchoolEvent.event_date, limit)

    async def create_event(self, request: EventCreateRequest) -> SchoolEvent:
        data = request.model_dump()
        data["event_date"] = ensure_utc(data["event_date"])
        return await self._add(SchoolEvent(**data))

    async def update_event(self, event_id: str, request: BaseModel) -> SchoolEvent:
        return await self._update(SchoolEvent, event_id, request)

    async def delete_event(self, event_id: str) -> None:
        await self._delete(SchoolEvent, event_id)

    # Helpers

    async def _list(self, model: type[ModelT], order_column, limit: int | None) -> list[ModelT]:
        stmt = select(model).order_by(order_column.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def _add(self, item: ModelT) -> ModelT:
        self._db.add(item)
        await self._db.commit()
        await self._db.refresh(item)
        logger.info("%s created: %s", type(item).__name__, item.id)
        return item

    async def _get(self, model: type[ModelT], item_id: str) -> ModelT:
        item = await self._db.get(model, item_id)
        if item is None:
            raise ContentNotFoundError(f"{model.__name__} {item_id} not found")
        return item

    async def _update(self, model: type[ModelT], item_id: str, request: BaseModel) -> ModelT:
        item = await self._get(model, item_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(item, field, value)
        await self._db.commit()
        await self._db.refresh(item)
        return item

    async def _delete(self, model: type[ModelT], item_id: str) -> None:
        item = await self._get(model, item_id)
        await self._db.delete(item)
        await self._db.commit()
        logger.info("%s deleted: %s", model.__name__, item_id)
