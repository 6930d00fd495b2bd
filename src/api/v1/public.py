# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public read-only endpoints for the school website.

- GET /announcements - Latest announcements
- GET /news - News items, newest first
- GET /events - School events, newest first
- GET /org-chart - Organizational chart

No authentication is required.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from src.api.dependencies import DbSession
from src.domains.content.service import ContentService
from src.domains.school.service import SchoolService
from src.models.content import AnnouncementResponse, EventResponse, NewsResponse
from src.models.school import OrgChartEntryResponse

router = APIRouter()

Limit = Annotated[int | None, Query(ge=1, le=100, description="Maximum items to return")]


@router.get("/announcements", response_model=list[AnnouncementResponse], summary="List announcements")
async def list_announcements(db: DbSession, limit: Limit = None) -> list[AnnouncementResponse]:
    items = await ContentService(db).list_announcements(limit)
    return [AnnouncementResponse.model_validate(i) for i in items]


@router.get("/news", response_model=list[NewsResponse], summary="List news")
async def list_news(db: DbSession, limit: Limit = None) -> list[NewsResponse]:
    items = await ContentService(db).list_news(limit)
    return [NewsResponse.model_validate(i) for i in items]


@router.get("/events", response_model=list[EventResponse], summary="List events")
async def list_events(db: DbSession, limit: Limit = None) -> list[EventResponse]:
    items = await ContentService(db).list_events(limit)
    return [EventResponse.model_validate(i) for i in items]


@router.get("/org-chart", response_model=list[OrgChartEntryResponse], summary="Organizational chart")
async def org_chart(db: DbSession) -> list[OrgChartEntryResponse]:
    entries = await SchoolService(db).list_org_chart()
    return [OrgChartEntryResponse.model_validate(e) for e in entries]
