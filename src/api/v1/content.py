# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin endpoints for announcements, news and events.

- POST /announcements, PUT /announcements/{id}, DELETE /announcements/{id}
- POST /news, PUT /news/{id}, DELETE /news/{id}
- POST /events, PUT /events/{id}, DELETE /events/{id}

Reads are served by the public router.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from src.api.dependencies import AdminUser, DbSession
from src.domains.content.service import ContentNotFoundError, ContentService
from src.models.content import (
    AnnouncementCreateRequest,
    AnnouncementResponse,
    AnnouncementUpdateRequest,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    NewsCreateRequest,
    NewsResponse,
    NewsUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(e: ContentNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/announcements",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create announcement",
)
async def create_announcement(
    data: AnnouncementCreateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> AnnouncementResponse:
    item = await ContentService(db).create_announcement(data, current_user.id)
    return AnnouncementResponse.model_validate(item)


@router.put("/announcements/{announcement_id}", response_model=AnnouncementResponse, summary="Update announcement")
async def update_announcement(
    announcement_id: str,
    data: AnnouncementUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> AnnouncementResponse:
    try:
        item = await ContentService(db).update_announcement(announcement_id, data)
    except ContentNotFoundError as e:
        raise _not_found(e)
    return AnnouncementResponse.model_validate(item)


@router.delete(
    "/announcements/{announcement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete announcement",
)
async def delete_announcement(announcement_id: str, db: DbSession, current_user: AdminUser) -> None:
    try:
        await ContentService(db).delete_announcement(announcement_id)
    except ContentNotFoundError as e:
        raise _not_found(e)


@router.post(
    "/news",
    response_model=NewsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create news item",
)
async def create_news(data: NewsCreateRequest, db: DbSession, current_user: AdminUser) -> NewsResponse:
    item = await ContentService(db).create_news(data)
    return NewsResponse.model_validate(item)


@router.put("/news/{news_id}", response_model=NewsResponse, summary="Update news item")
async def update_news(
    news_id: str,
    data: NewsUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> NewsResponse:
    try:
        item = await ContentService(db).update_news(news_id, data)
    except ContentNotFoundError as e:
        raise _not_found(e)
    return NewsResponse.model_validate(item)


@router.delete("/news/{news_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete news item")
async def delete_news(news_id: str, db: DbSession, current_user: AdminUser) -> None:
    try:
        await ContentService(db).delete_news(news_id)
    except ContentNotFoundError as e:
        raise _not_found(e)


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(data: EventCreateRequest, db: DbSession, current_user: AdminUser) -> EventResponse:
    item = await ContentService(db).create_event(data)
    return EventResponse.model_validate(item)


@router.put("/events/{event_id}", response_model=EventResponse, summary="Update event")
async def update_event(
    event_id: str,
    data: EventUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> EventResponse:
    try:
        item = await ContentService(db).update_event(event_id, data)
    except ContentNotFoundError as e:
        raise _not_found(e)
    return EventResponse.model_validate(item)


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete event")
async def delete_event(event_id: str, db: DbSession, current_user: AdminUser) -> None:
    try:
        await ContentService(db).delete_event(event_id)
    except ContentNotFoundError as e:
        raise _not_found(e)
