# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat service.

This module provides the ChatService that handles:
- Conversations (private pairs are reused, groups carry a title)
- Messages with a ``before`` cursor for paging backwards
- Read receipts and presence (UserStatus rows)

Every state change is published on the event bus so the socket layer
can push it to connected clients, on this worker or, through the Redis
relay, on the others.

Example:
    >>> service = ChatService(db)
    >>> conversation = await service.create_conversation(user_id, request)
    >>> message = await service.send_message(conversation.id, user_id, body)
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import ChatSettings
from src.infrastructure.database.models import (
    Conversation,
    ConversationMember,
    Message,
    User,
    UserStatus,
)
from src.infrastructure.events import EventBus, EventTypes, get_event_bus
from src.models.chat import (
    ConversationCreateRequest,
    ConversationResponse,
    MessageCreateRequest,
    MessageResponse,
    PresenceResponse,
)
from src.models.user import UserSummary
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ChatServiceError(Exception):
    """Base exception for chat service errors."""

    pass


class ConversationNotFoundError(ChatServiceError):
    pass


class MessageNotFoundError(ChatServiceError):
    pass


class ChatAccessDeniedError(ChatServiceError):
    """Raised when a user is not a member of the conversation."""

    pass


class InvalidConversationError(ChatServiceError):
    """Raised for bad member lists."""

    pass


class ChatService:
    """Conversations, messages and presence.

    Attributes:
        _db: Async database session.
        _event_bus: Bus the chat events are published on.
        _settings: Page size limits.
    """

    def __init__(
        self,
        db: AsyncSession,
        event_bus: EventBus | None = None,
        settings: ChatSettings | None = None,
    ) -> None:
        self._db = db
        self._event_bus = event_bus or get_event_bus()
        self._settings = settings or ChatSettings()

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def list_conversations(self, user_id: str) -> list[ConversationResponse]:
        """Conversations of a user, most recently active first."""
        result = await self._db.execute(
            select(Conversation)
            .join(ConversationMember, ConversationMember.conversation_id == Conversation.id)
            .where(ConversationMember.user_id == user_id)
            .order_by(Conversation.updated_at.desc())
        )
        conversations = list(result.scalars().all())
        if not conversations:
            return []

        ids = [c.id for c in conversations]
        members = await self._members_by_conversation(ids)

        unread_result = await self._db.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.conversation_id.in_(ids),
                Message.is_read.is_(False),
                Message.sender_id != user_id,
            )
            .group_by(Message.conversation_id)
        )
        unread = {conversation_id: count for conversation_id, count in unread_result.all()}

        responses = []
        for conversation in conversations:
            last = await self._last_message(conversation.id)
            responses.append(
                self._conversation_response(
                    conversation,
                    members.get(conversation.id, []),
                    last_message=last,
                    unread_count=unread.get(conversation.id, 0),
                )
            )
        return responses

    async def create_conversation(
        self, user_id: str, request: ConversationCreateRequest
    ) -> ConversationResponse:
        """Create a conversation, or return the existing private one.

        The creator is always a member. A private conversation has exactly
        one other member.

        Raises:
            InvalidConversationError: For unknown users or a bad private pair.
        """
        others = list(dict.fromkeys(m for m in request.member_ids if m != user_id))
        if not others:
            raise InvalidConversationError("A conversation needs at least one other member")
        if request.conversation_type == "private" and len(others) != 1:
            raise InvalidConversationError("A private conversation has exactly two members")

        found = await self._db.execute(select(User.id).where(User.id.in_(others)))
        missing = set(others) - set(found.scalars().all())
        if missing:
            raise InvalidConversationError(f"Unknown users: {', '.join(sorted(missing))}")

        if request.conversation_type == "private":
            existing = await self._find_private(user_id, others[0])
            if existing is not None:
                members = await self._members_by_conversation([existing.id])
                last = await self._last_message(existing.id)
                return self._conversation_response(
                    existing, members.get(existing.id, []), last_message=last
                )

        now = utc_now()
        conversation = Conversation(
            conversation_type=request.conversation_type,
            title=request.title,
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        self._db.add(conversation)
        await self._db.flush()
        member_ids = [user_id, *others]
        self._db.add_all(
            ConversationMember(conversation_id=conversation.id, user_id=m) for m in member_ids
        )
        await self._db.commit()

        members = await self._members_by_conversation([conversation.id])
        response = self._conversation_response(conversation, members.get(conversation.id, []))
        await self._event_bus.publish(
            EventTypes.Chat.CONVERSATION_CREATED,
            {
                "conversation_id": conversation.id,
                "member_ids": member_ids,
                "conversation": response.model_dump(mode="json"),
            },
        )
        logger.info(
            "Conversation created: %s (%s, %d members)",
            conversation.id,
            conversation.conversation_type,
            len(member_ids),
        )
        return response

    async def is_member(self, conversation_id: str, user_id: str) -> bool:
        member = await self._db.scalar(
            select(ConversationMember.id).where(
                ConversationMember.conversation_id == conversation_id,
                ConversationMember.user_id == user_id,
            )
        )
        return member is not None

    async def member_ids(self, conversation_id: str) -> list[str]:
        result = await self._db.execute(
            select(ConversationMember.user_id).where(
                ConversationMember.conversation_id == conversation_id
            )
        )
        return list(result.scalars().all())

    async def conversation_ids(self, user_id: str) -> list[str]:
        result = await self._db.execute(
            select(ConversationMember.conversation_id).where(ConversationMember.user_id == user_id)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: int | None = None,
        before: datetime | None = None,
    ) -> list[MessageResponse]:
        """Messages newest first, optionally older than ``before``."""
        await self._ensure_member(conversation_id, user_id)

        limit = min(limit or self._settings.default_page_size, self._settings.max_page_size)
        stmt = (
            select(Message, User.name)
            .outerjoin(User, User.id == Message.sender_id)
            .where(Message.conversation_id == conversation_id)
        )
        if before is not None:
            stmt = stmt.where(Message.created_at < ensure_utc(before))
        result = await self._db.execute(
            stmt.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
        )
        return [self._message_response(m, name) for m, name in result.all()]

    async def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        request: MessageCreateRequest,
    ) -> MessageResponse:
        """Store a message and broadcast it to the conversation.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            ChatAccessDeniedError: If the sender is not a member.
        """
        conversation = await self._db.get(Conversation, conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
        await self._ensure_member(conversation_id, sender_id)

        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            message_text=request.message_text,
            attachment_url=request.attachment_url,
            is_read=False,
            created_at=utc_now(),
        )
        self._db.add(message)
        conversation.updated_at = message.created_at
        await self._db.commit()
        await self._db.refresh(message)

        sender_name = await self._db.scalar(select(User.name).where(User.id == sender_id))
        response = self._message_response(message, sender_name)
        await self._event_bus.publish(
            EventTypes.Chat.MESSAGE_CREATED,
            {
                "conversation_id": conversation_id,
                "message": response.model_dump(mode="json"),
            },
        )
        return response

    async def mark_read(self, conversation_id: str, user_id: str) -> int:
        """Mark messages from other senders as read. Returns the count."""
        await self._ensure_member(conversation_id, user_id)

        result = await self._db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != user_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self._db.commit()

        updated = result.rowcount or 0
        await self._event_bus.publish(
            EventTypes.Chat.MESSAGES_READ,
            {"conversation_id": conversation_id, "user_id": user_id, "updated": updated},
        )
        return updated

    async def list_recent_messages(self, limit: int = 100) -> list[MessageResponse]:
        """Latest messages across all conversations, for moderation."""
        result = await self._db.execute(
            select(Message, User.name)
            .outerjoin(User, User.id == Message.sender_id)
            .order_by(Message.created_at.desc())
            .limit(min(limit, self._settings.max_page_size))
        )
        return [self._message_response(m, name) for m, name in result.all()]

    async def delete_message(self, message_id: str) -> None:
        result = await self._db.execute(delete(Message).where(Message.id == message_id))
        if not result.rowcount:
            raise MessageNotFoundError(f"Message {message_id} not found")
        await self._db.commit()
        logger.info("Message deleted: %s", message_id)

    # ------------------------------------------------------------------
    # Presence and directory
    # ------------------------------------------------------------------

    async def set_presence(self, user_id: str, is_online: bool) -> PresenceResponse:
        """Upsert the presence row and announce the change."""
        status = await self._db.get(UserStatus, user_id)
        now = utc_now()
        if status is None:
            status = UserStatus(user_id=user_id, is_online=is_online, last_seen=now)
            self._db.add(status)
        else:
            status.is_online = is_online
            status.last_seen = now
        await self._db.commit()

        name = await self._db.scalar(select(User.name).where(User.id == user_id))
        presence = PresenceResponse(
            user_id=user_id, name=name, is_online=is_online, last_seen=now
        )
        await self._event_bus.publish(
            EventTypes.Chat.USER_ONLINE if is_online else EventTypes.Chat.USER_OFFLINE,
            presence.model_dump(mode="json"),
        )
        return presence

    async def list_online_users(self) -> list[PresenceResponse]:
        result = await self._db.execute(
            select(UserStatus, User.name)
            .join(User, User.id == UserStatus.user_id)
            .where(UserStatus.is_online.is_(True))
            .order_by(User.name)
        )
        return [
            PresenceResponse(
                user_id=status.user_id,
                name=name,
                is_online=status.is_online,
                last_seen=status.last_seen,
            )
            for status, name in result.all()
        ]

    async def directory(self, user_id: str) -> list[UserSummary]:
        """Active users a member can start a conversation with."""
        result = await self._db.execute(
            select(User)
            .where(User.id != user_id, User.is_active.is_(True))
            .order_by(User.name)
        )
        return [UserSummary.model_validate(u) for u in result.scalars().all()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_member(self, conversation_id: str, user_id: str) -> None:
        if not await self.is_member(conversation_id, user_id):
            raise ChatAccessDeniedError("Not a member of this conversation")

    async def _find_private(self, user_id: str, other_id: str) -> Conversation | None:
        pair = (
            select(ConversationMember.conversation_id)
            .where(ConversationMember.user_id.in_([user_id, other_id]))
            .group_by(ConversationMember.conversation_id)
            .having(func.count(ConversationMember.user_id) == 2)
        )
        result = await self._db.execute(
            select(Conversation)
            .where(Conversation.conversation_type == "private", Conversation.id.in_(pair))
            .order_by(Conversation.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _members_by_conversation(self, conversation_ids: list[str]) -> dict[str, list[User]]:
        result = await self._db.execute(
            select(ConversationMember.conversation_id, User)
            .join(User, User.id == ConversationMember.user_id)
            .where(ConversationMember.conversation_id.in_(conversation_ids))
            .order_by(ConversationMember.joined_at)
        )
        members: dict[str, list[User]] = {}
        for conversation_id, user in result.all():
            members.setdefault(conversation_id, []).append(user)
        return members

    async def _last_message(self, conversation_id: str) -> MessageResponse | None:
        result = await self._db.execute(
            select(Message, User.name)
            .outerjoin(User, User.id == Message.sender_id)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        return self._message_response(row[0], row[1])

    @staticmethod
    def _message_response(message: Message, sender_name: str | None) -> MessageResponse:
        return MessageResponse(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            sender_name=sender_name,
            message_text=message.message_text,
            attachment_url=message.attachment_url,
            is_read=message.is_read,
            created_at=message.created_at,
        )

    @staticmethod
    def _conversation_response(
        conversation: Conversation,
        members: list[User],
        last_message: MessageResponse | None = None,
        unread_count: int = 0,
    ) -> ConversationResponse:
        return ConversationResponse(
            id=conversation.id,
            conversation_type=conversation.conversation_type,
            title=conversation.title,
            created_by=conversation.created_by,
            members=[UserSummary.model_validate(m) for m in members],
            last_message=last_message,
            unread_count=unread_count,
            updated_at=conversation.updated_at,
        )
