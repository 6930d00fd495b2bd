# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcement, news and event DTOs."""

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import UTCDateTime


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)


class AnnouncementUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    created_by: str | None = None
    created_at: UTCDateTime


class NewsCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    summary: str | None = None
    content: str | None = None
    image_url: str | None = Field(default=None, max_length=1000)
    date_posted: UTCDateTime | None = None


class NewsUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    summary: str | None = None
    content: str | None = None
    image_url: str | None = Field(default=None, max_length=1000)
    date_posted: UTCDateTime | None = None


class NewsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    summary: str | None = None
    content: str | None = None
    image_url: str | None = None
    date_posted: UTCDateTime


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    event_date: UTCDateTime
    location: str | None = Field(default=None, max_length=255)


class EventUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    event_date: UTCDateTime | None = None
    location: str | None = Field(default=None, max_length=255)


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    event_date: UTCDateTime
    location: str | None = None
