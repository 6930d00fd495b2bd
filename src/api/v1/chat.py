# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat REST endpoints.

- GET /conversations - List my conversations
- POST /conversations - Create (or reuse) a conversation
- GET /conversations/{conversation_id}/messages - Page through messages
- POST /conversations/{conversation_id}/messages - Send a message
- PUT /conversations/{conversation_id}/read - Mark conversation read
- GET /online - Users currently online
- PUT /status - Update my presence
- GET /users - Chat user directory

Admin moderation (mounted under /admin):
- GET /chat/messages - Recent messages across conversations
- DELETE /chat/messages/{message_id} - Delete a message

Realtime delivery of the same events happens over the /ws socket.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import AdminUser, AuthenticatedUser, DbSession
from src.core.config import get_settings
from src.domains.chat.service import (
    ChatAccessDeniedError,
    ChatService,
    ConversationNotFoundError,
    InvalidConversationError,
    MessageNotFoundError,
)
from src.models.chat import (
    ConversationCreateRequest,
    ConversationResponse,
    MarkReadResponse,
    MessageCreateRequest,
    MessageResponse,
    PresenceResponse,
    StatusUpdateRequest,
)
from src.models.user import UserSummary

router = APIRouter()
admin_router = APIRouter()


def _service(db: AsyncSession) -> ChatService:
    return ChatService(db, settings=get_settings().chat)


# =============================================================================
# Conversations
# =============================================================================


@router.get(
    "/conversations",
    response_model=list[ConversationResponse],
    summary="List my conversations",
    description="Conversations with members, last message and unread count.",
)
async def list_conversations(
    db: DbSession,
    current_user: AuthenticatedUser,
) -> list[ConversationResponse]:
    return await _service(db).list_conversations(current_user.id)


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create conversation",
    description="A private conversation with an existing partner is returned as is.",
)
async def create_conversation(
    request: ConversationCreateRequest,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> ConversationResponse:
    try:
        return await _service(db).create_conversation(current_user.id, request)
    except InvalidConversationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =============================================================================
# Messages
# =============================================================================


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[MessageResponse],
    summary="List messages",
    description="Newest first. Pass `before` to page back in time.",
)
async def list_messages(
    conversation_id: str,
    db: DbSession,
    current_user: AuthenticatedUser,
    limit: Annotated[int | None, Query(ge=1, le=200)] = None,
    before: Annotated[datetime | None, Query()] = None,
) -> list[MessageResponse]:
    try:
        return await _service(db).list_messages(
            conversation_id, current_user.id, limit=limit, before=before
        )
    except ChatAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
)
async def send_message(
    conversation_id: str,
    request: MessageCreateRequest,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> MessageResponse:
    try:
        return await _service(db).send_message(conversation_id, current_user.id, request)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ChatAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.put(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark conversation read",
)
async def mark_read(
    conversation_id: str,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> MarkReadResponse:
    try:
        updated = await _service(db).mark_read(conversation_id, current_user.id)
    except ChatAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return MarkReadResponse(conversation_id=conversation_id, updated=updated)


# =============================================================================
# Presence and directory
# =============================================================================


@router.get("/online", response_model=list[PresenceResponse], summary="List online users")
async def list_online_users(
    db: DbSession,
    current_user: AuthenticatedUser,
) -> list[PresenceResponse]:
    return await _service(db).list_online_users()


@router.put("/status", response_model=PresenceResponse, summary="Update my status")
async def update_status(
    request: StatusUpdateRequest,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> PresenceResponse:
    return await _service(db).set_presence(current_user.id, request.is_online)


@router.get("/users", response_model=list[UserSummary], summary="Chat user directory")
async def directory(
    db: DbSession,
    current_user: AuthenticatedUser,
) -> list[UserSummary]:
    return await _service(db).directory(current_user.id)


# =============================================================================
# Moderation
# =============================================================================


@admin_router.get(
    "/chat/messages",
    response_model=list[MessageResponse],
    summary="Recent chat messages",
)
async def list_recent_messages(
    db: DbSession,
    current_user: AdminUser,
    limit: Annotated[int, Query(ge=1, le=200)] = 100,
) -> list[MessageResponse]:
    return await _service(db).list_recent_messages(limit=limit)


@admin_router.delete(
    "/chat/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete chat message",
)
async def delete_message(
    message_id: str,
    db: DbSession,
    current_user: AdminUser,
) -> None:
    try:
        await _service(db).delete_message(message_id)
    except MessageNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
