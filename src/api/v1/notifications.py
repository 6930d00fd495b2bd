# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification endpoints for the signed-in user.

- GET / - List my notifications (unread filter, limit)
- GET /unread-count - Number of unread notifications
- PUT /{notification_id}/read - Mark one read
- PUT /read-all - Mark all read
- DELETE /{notification_id} - Delete one

New notifications are also pushed over the chat socket.
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import AuthenticatedUser, DbSession
from src.domains.notification.service import NotificationNotFoundError, NotificationService
from src.models.common import CountResponse
from src.models.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse, summary="List my notifications")
async def list_notifications(
    db: DbSession,
    current_user: AuthenticatedUser,
    unread_only: Annotated[bool, Query()] = False,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> NotificationListResponse:
    service = NotificationService(db)
    items = await service.list_for_user(current_user.id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        unread_count=await service.unread_count(current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread count")
async def unread_count(db: DbSession, current_user: AuthenticatedUser) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await NotificationService(db).unread_count(current_user.id))


@router.put("/read-all", response_model=CountResponse, summary="Mark all read")
async def mark_all_read(db: DbSession, current_user: AuthenticatedUser) -> CountResponse:
    return CountResponse(count=await NotificationService(db).mark_all_read(current_user.id))


@router.put("/{notification_id}/read", response_model=NotificationResponse, summary="Mark read")
async def mark_read(
    notification_id: str,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> NotificationResponse:
    try:
        notification = await NotificationService(db).mark_read(notification_id, current_user.id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete notification")
async def delete_notification(notification_id: str, db: DbSession, current_user: AuthenticatedUser) -> None:
    try:
        await NotificationService(db).delete(notification_id, current_user.id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
