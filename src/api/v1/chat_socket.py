# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat WebSocket endpoint.

- WebSocket /ws - Realtime chat, presence and notification channel

Clients authenticate with a JWT, either as ``?token=`` or as the first
message. Every connection joins the ``user_{id}`` room and one
``conversation_{id}`` room per conversation the user belongs to.

Chat and notification events reach sockets through the event bus, so
messages sent over REST, over this socket, or on another worker (via the
Redis relay) are delivered the same way.

Example:
    const ws = new WebSocket(`wss://api.example.com/api/v1/chat/ws?token=${jwt}`);
    ws.send(JSON.stringify({
        type: "send_message", conversation_id: id, message_text: "Hello",
    }));
    ws.onmessage = (event) => {
        const data = JSON.parse(event.data);
        if (data.type === "new_message") render(data.message);
    };
"""

import asyncio
import json
import logging
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any

import anyio
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from src.api.dependencies import SessionFactory, get_session_factory
from src.api.middleware.auth import CurrentUser
from src.core.config import get_settings
from src.domains.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError
from src.domains.chat.service import ChatAccessDeniedError, ChatService, ChatServiceError
from src.infrastructure.database import DatabaseError
from src.infrastructure.events import (
    EventBus,
    EventData,
    EventPatterns,
    EventTypes,
    get_event_bus,
)
from src.models.chat import MessageCreateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation_{conversation_id}"


class ConnectionState:
    """One open socket.

    Attributes:
        websocket: The WebSocket connection.
        user: Authenticated user.
        rooms: Rooms this connection has joined.
        message_queue: Outgoing messages, drained by the sender task.
    """

    def __init__(self, websocket: WebSocket, user: CurrentUser, queue_size: int = 256) -> None:
        self.websocket = websocket
        self.user = user
        self.rooms: set[str] = set()
        self.message_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def user_id(self) -> str:
        return self.user.id

    def send_message(self, message: dict[str, Any]) -> None:
        """Queue a message. Dropped when the connection is closed or backed up."""
        if self._closed:
            return
        try:
            self.message_queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Dropping %s for slow socket of user %s",
                message.get("type"),
                self.user_id,
            )

    def close(self) -> None:
        self._closed = True


class ChatConnectionManager:
    """Tracks chat sockets and routes bus events to rooms.

    Attributes:
        _connections: user_id -> open connections of that user.
        _rooms: room name -> connections in that room.
        _bus: Event bus the manager is subscribed to.
    """

    def __init__(self) -> None:
        self._connections: dict[str, list[ConnectionState]] = {}
        self._rooms: dict[str, set[ConnectionState]] = {}
        self._bus: EventBus | None = None

    # ------------------------------------------------------------------
    # Event bus
    # ------------------------------------------------------------------

    def attach(self, bus: EventBus | None = None) -> None:
        """Subscribe to chat and notification events. Idempotent per bus."""
        bus = bus or get_event_bus()
        if self._bus is bus:
            return
        self.detach()
        for pattern in EventPatterns.REALTIME:
            bus.subscribe(pattern, self.handle_event)
        self._bus = bus
        logger.info("Chat connection manager subscribed to EventBus")

    def detach(self) -> None:
        if self._bus is None:
            return
        for pattern in EventPatterns.REALTIME:
            self._bus.unsubscribe(pattern, self.handle_event)
        self._bus = None

    async def handle_event(self, event: EventData) -> None:
        """Translate a bus event into socket messages."""
        payload = event.payload
        event_type = event.event_type

        if event_type == EventTypes.Chat.CONVERSATION_CREATED:
            room = conversation_room(payload["conversation_id"])
            for member_id in payload.get("member_ids", []):
                for state in self._connections.get(member_id, []):
                    self.join(state, room)

        elif event_type == EventTypes.Chat.MESSAGE_CREATED:
            self.emit_to_room(
                conversation_room(payload["conversation_id"]),
                {"type": "new_message", "message": payload["message"]},
            )

        elif event_type == EventTypes.Chat.MESSAGES_READ:
            self.emit_to_room(
                conversation_room(payload["conversation_id"]),
                {
                    "type": "messages_read",
                    "conversation_id": payload["conversation_id"],
                    "user_id": payload["user_id"],
                },
                exclude_user=payload["user_id"],
            )

        elif event_type in (EventTypes.Chat.TYPING_STARTED, EventTypes.Chat.TYPING_STOPPED):
            message_type = (
                "user_typing"
                if event_type == EventTypes.Chat.TYPING_STARTED
                else "user_stop_typing"
            )
            self.emit_to_room(
                conversation_room(payload["conversation_id"]),
                {
                    "type": message_type,
                    "conversation_id": payload["conversation_id"],
                    "user_id": payload["user_id"],
                    "name": payload.get("name"),
                },
                exclude_user=payload["user_id"],
            )

        elif event_type in (EventTypes.Chat.USER_ONLINE, EventTypes.Chat.USER_OFFLINE):
            self.broadcast(
                {
                    "type": "user_online" if payload["is_online"] else "user_offline",
                    "user_id": payload["user_id"],
                    "name": payload.get("name"),
                    "last_seen": payload.get("last_seen"),
                }
            )

        elif event_type == EventTypes.Notification.CREATED:
            self.emit_to_room(
                user_room(payload["recipient_id"]),
                {"type": "notification", "notification": payload["notification"]},
            )

    # ------------------------------------------------------------------
    # Connections and rooms
    # ------------------------------------------------------------------

    def register(self, state: ConnectionState) -> bool:
        """Add a connection. Returns True for the user's first connection."""
        connections = self._connections.setdefault(state.user_id, [])
        connections.append(state)
        self.join(state, user_room(state.user_id))
        logger.info(
            "Chat socket registered: user=%s, connections=%d",
            state.user_id,
            len(connections),
        )
        return len(connections) == 1

    def unregister(self, state: ConnectionState) -> bool:
        """Remove a connection. Returns True when it was the user's last one."""
        state.close()
        for room in list(state.rooms):
            self.leave(state, room)

        connections = self._connections.get(state.user_id, [])
        if state in connections:
            connections.remove(state)
        if connections:
            return False
        self._connections.pop(state.user_id, None)
        logger.info("Chat socket unregistered, user offline: %s", state.user_id)
        return True

    def join(self, state: ConnectionState, room: str) -> None:
        self._rooms.setdefault(room, set()).add(state)
        state.rooms.add(room)

    def leave(self, state: ConnectionState, room: str) -> None:
        state.rooms.discard(room)
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(state)
        if not members:
            del self._rooms[room]

    def emit_to_room(
        self,
        room: str,
        message: dict[str, Any],
        exclude_user: str | None = None,
    ) -> None:
        for state in list(self._rooms.get(room, ())):
            if exclude_user is not None and state.user_id == exclude_user:
                continue
            state.send_message(message)

    def broadcast(self, message: dict[str, Any]) -> None:
        for connections in list(self._connections.values()):
            for state in connections:
                state.send_message(message)

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def room_members(self, room: str) -> set[str]:
        return {state.user_id for state in self._rooms.get(room, ())}

    @property
    def connection_count(self) -> int:
        return sum(len(c) for c in self._connections.values())


_chat_manager: ChatConnectionManager | None = None


def get_chat_manager() -> ChatConnectionManager:
    """Get the singleton chat connection manager."""
    global _chat_manager
    if _chat_manager is None:
        _chat_manager = ChatConnectionManager()
    return _chat_manager


def reset_chat_manager() -> None:
    """Drop the singleton. Used by tests for a clean state."""
    global _chat_manager
    if _chat_manager is not None:
        _chat_manager.detach()
    _chat_manager = None


def _authenticate(token: str | None) -> CurrentUser | None:
    if not token:
        return None
    try:
        payload = JWTManager(get_settings().jwt).decode_token(token, expected_type="access")
    except (TokenExpiredError, InvalidTokenError) as e:
        logger.debug("Chat socket auth failed: %s", e)
        return None
    return CurrentUser(payload)


async def _send_error(websocket: WebSocket, code: str, message: str) -> None:
    await websocket.send_json({"type": "error", "code": code, "message": message})


async def _wait_for_auth(websocket: WebSocket, timeout: float) -> CurrentUser | None:
    """Ask for an auth message. Returns None after sending the error."""
    await websocket.send_json({
        "type": "auth_required",
        "message": "Send auth message with token: {\"type\": \"auth\", \"token\": \"...\"}",
    })
    try:
        auth_data = await asyncio.wait_for(websocket.receive_json(), timeout=timeout)
    except asyncio.TimeoutError:
        await _send_error(websocket, "AUTH_TIMEOUT", "Authentication timeout")
        return None
    except ValueError:
        auth_data = {}

    user = None
    if isinstance(auth_data, dict) and auth_data.get("type") == "auth":
        user = _authenticate(auth_data.get("token"))
    if user is None:
        await _send_error(websocket, "AUTH_FAILED", "Invalid or expired token")
    return user


@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    session_factory: SessionFactory = Depends(get_session_factory),
) -> None:
    """Realtime chat socket.

    Args:
        websocket: WebSocket connection.
        session_factory: Opens one database session per client action.
    """
    await websocket.accept()

    settings = get_settings()
    manager = get_chat_manager()
    manager.attach()
    state: ConnectionState | None = None
    sender_task: asyncio.Task | None = None

    try:
        user = _authenticate(websocket.query_params.get("token"))
        if user is None:
            user = await _wait_for_auth(websocket, settings.chat.auth_timeout_seconds)
        if user is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        state = ConnectionState(websocket, user, queue_size=settings.chat.send_queue_size)
        first_connection = manager.register(state)

        async with session_factory() as db:
            service = ChatService(db, settings=settings.chat)
            conversation_ids = await service.conversation_ids(user.id)
            for conversation_id in conversation_ids:
                manager.join(state, conversation_room(conversation_id))
            if first_connection:
                await service.set_presence(user.id, True)

        await websocket.send_json({
            "type": "connected",
            "user_id": user.id,
            "conversation_ids": conversation_ids,
        })

        sender_task = asyncio.create_task(_message_sender(websocket, state))

        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                data = None
            if not isinstance(data, dict):
                state.send_message({
                    "type": "error",
                    "code": "INVALID_MESSAGE",
                    "message": "Messages must be JSON objects",
                })
                continue
            await _handle_client_message(data, state, manager, session_factory)

    except WebSocketDisconnect:
        logger.debug("Chat socket disconnected: %s", state.user_id if state else "anonymous")

    except Exception as e:
        logger.error("Chat socket error: %s", str(e), exc_info=True)
        if websocket.application_state == WebSocketState.CONNECTED:
            with suppress(RuntimeError, WebSocketDisconnect):
                await _send_error(websocket, "INTERNAL_ERROR", "Internal server error")

    finally:
        with anyio.CancelScope(shield=True):
            await _close_connection(websocket, state, sender_task, manager, session_factory)


async def _handle_client_message(
    data: dict[str, Any],
    state: ConnectionState,
    manager: ChatConnectionManager,
    session_factory: SessionFactory,
) -> None:
    msg_type = data.get("type")
    conversation_id = data.get("conversation_id")

    if msg_type == "ping":
        state.send_message({"type": "pong", "timestamp": datetime.now(timezone.utc).isoformat()})
        return

    if msg_type not in (
        "join_conversation",
        "leave_conversation",
        "send_message",
        "typing_start",
        "typing_stop",
        "mark_read",
    ):
        state.send_message({
            "type": "error",
            "code": "UNKNOWN_MESSAGE_TYPE",
            "message": f"Unknown message type: {msg_type}",
        })
        return

    if not isinstance(conversation_id, str) or not conversation_id:
        state.send_message({
            "type": "error",
            "code": "INVALID_MESSAGE",
            "message": "conversation_id is required",
        })
        return

    room = conversation_room(conversation_id)

    if msg_type == "leave_conversation":
        manager.leave(state, room)

    elif msg_type == "join_conversation":
        async with session_factory() as db:
            is_member = await ChatService(db).is_member(conversation_id, state.user_id)
        if is_member:
            manager.join(state, room)
        else:
            state.send_message({
                "type": "error",
                "code": "FORBIDDEN",
                "message": "Not a member of this conversation",
            })

    elif msg_type == "send_message":
        try:
            request = MessageCreateRequest(
                message_text=data.get("message_text"),
                attachment_url=data.get("attachment_url"),
            )
            async with session_factory() as db:
                await ChatService(db, settings=get_settings().chat).send_message(
                    conversation_id, state.user_id, request
                )
        except (ValidationError, ChatServiceError, DatabaseError) as e:
            logger.info("Socket message from %s rejected: %s", state.user_id, e)
            state.send_message({
                "type": "message_error",
                "conversation_id": conversation_id,
                "error": "Failed to send message",
            })

    elif msg_type in ("typing_start", "typing_stop"):
        # Only rooms the socket has joined, which implies membership
        if room not in state.rooms:
            return
        await get_event_bus().publish(
            EventTypes.Chat.TYPING_STARTED
            if msg_type == "typing_start"
            else EventTypes.Chat.TYPING_STOPPED,
            {
                "conversation_id": conversation_id,
                "user_id": state.user_id,
                "name": state.user.name,
            },
        )

    elif msg_type == "mark_read":
        try:
            async with session_factory() as db:
                await ChatService(db).mark_read(conversation_id, state.user_id)
        except ChatAccessDeniedError as e:
            state.send_message({"type": "error", "code": "FORBIDDEN", "message": str(e)})


async def _close_connection(
    websocket: WebSocket,
    state: ConnectionState | None,
    sender_task: asyncio.Task | None,
    manager: ChatConnectionManager,
    session_factory: SessionFactory,
) -> None:
    """Stop the sender, drop the connection and mark the user offline.

    Called inside a shielded cancel scope, so the offline update and the
    session close complete even when the handler task is being cancelled.
    """
    if sender_task is not None:
        sender_task.cancel()
        with suppress(asyncio.CancelledError):
            await sender_task
    if state is not None and manager.unregister(state):
        await _mark_offline(state.user_id, session_factory)
    if (
        websocket.application_state == WebSocketState.CONNECTED
        and websocket.client_state == WebSocketState.CONNECTED
    ):
        with suppress(RuntimeError):
            await websocket.close()


async def _mark_offline(user_id: str, session_factory: SessionFactory) -> None:
    try:
        async with session_factory() as db:
            await ChatService(db).set_presence(user_id, False)
    except DatabaseError as e:
        logger.warning("Could not mark user %s offline: %s", user_id, e)


async def _message_sender(websocket: WebSocket, state: ConnectionState) -> None:
    """Drain the connection's queue onto the socket."""
    while True:
        message = await state.message_queue.get()
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("Failed to send chat message: %s", e)
            break
