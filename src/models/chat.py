# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat DTOs shared by the REST endpoints and the socket channel."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import UTCDateTime
from src.models.user import UserSummary

ConversationType = Literal["private", "group"]


class ConversationCreateRequest(BaseModel):
    conversation_type: ConversationType = "private"
    title: str | None = Field(default=None, max_length=255)
    member_ids: list[str] = Field(min_length=1, description="Other participants")


class MessageCreateRequest(BaseModel):
    message_text: str | None = Field(default=None, max_length=10000)
    attachment_url: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def require_content(self) -> "MessageCreateRequest":
        if not ((self.message_text and self.message_text.strip()) or self.attachment_url):
            raise ValueError("message_text or attachment_url is required")
        return self


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str | None = None
    sender_name: str | None = None
    message_text: str | None = None
    attachment_url: str | None = None
    is_read: bool
    created_at: UTCDateTime


class ConversationResponse(BaseModel):
    id: str
    conversation_type: str
    title: str | None = None
    created_by: str | None = None
    members: list[UserSummary] = Field(default_factory=list)
    last_message: MessageResponse | None = None
    unread_count: int = 0
    updated_at: UTCDateTime


class PresenceResponse(BaseModel):
    user_id: str
    name: str | None = None
    is_online: bool
    last_seen: UTCDateTime


class StatusUpdateRequest(BaseModel):
    is_online: bool


class MarkReadResponse(BaseModel):
    conversation_id: str
    updated: int
