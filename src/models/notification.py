# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification DTOs."""

from pydantic import BaseModel, ConfigDict

from src.models.common import UTCDateTime


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    recipient_id: str
    sender_id: str | None = None
    title: str
    message: str
    type: str
    link: str | None = None
    is_read: bool
    created_at: UTCDateTime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int
