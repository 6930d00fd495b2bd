# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the chat WebSocket.

These run the real application lifespan under Starlette's TestClient
against a file-backed SQLite database, so REST calls and socket traffic
share one event loop, one event bus and one connection manager.
"""

import asyncio
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import pytest
from starlette.testclient import TestClient, WebSocketTestSession
from starlette.websockets import WebSocketDisconnect

from src.api.app import create_app
from src.api.v1.chat_socket import get_chat_manager, reset_chat_manager
from src.core.config import clear_settings_cache, get_settings
from src.domains.auth.jwt import JWTManager
from src.infrastructure.database import get_session
from src.infrastructure.database.connection import get_engine
from src.infrastructure.database.models import Base, User
from src.infrastructure.storage import reset_storage

pytestmark = pytest.mark.integration

WS_PATH = "/api/v1/chat/ws"


@dataclass
class Member:
    id: str
    name: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


async def _create_schema() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _add_user(name: str, role: str) -> str:
    async with get_session() as session:
        user = User(
            name=name,
            email=f"{name.split()[0].lower()}@school.edu",
            password_hash="not-used",
            role=role,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        return user.id


async def _wait_disconnected(user_id: str, timeout: float = 5.0) -> None:
    manager = get_chat_manager()

    async def poll() -> None:
        while manager.is_online(user_id):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


class LiveChat:
    """A running application plus helpers to add users."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def member(self, name: str, role: str = "student") -> Member:
        user_id = self.client.portal.call(_add_user, name, role)
        token = JWTManager(get_settings().jwt).create_access_token(user_id, role, name=name)
        return Member(id=user_id, name=name, token=token)

    @contextmanager
    def connect(
        self, member: Member | None = None, query_token: bool = True
    ) -> Iterator[WebSocketTestSession]:
        """Open a socket, then close it and wait for the server to drop it."""
        path = WS_PATH
        if member is not None and query_token:
            path = f"{WS_PATH}?token={member.token}"
        with self.client.websocket_connect(path) as ws:
            try:
                yield ws
            finally:
                ws.close()
                if member is not None:
                    self.client.portal.call(_wait_disconnected, member.id)

    def online(self, viewer: Member) -> set[str]:
        response = self.client.get("/api/v1/chat/online", headers=viewer.headers)
        assert response.status_code == 200, response.text
        return {p["user_id"] for p in response.json()}

    def conversation(self, owner: Member, *others: Member) -> str:
        response = self.client.post(
            "/api/v1/chat/conversations",
            json={"member_ids": [o.id for o in others]},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["id"]


@pytest.fixture
def live(tmp_path, monkeypatch) -> Generator[LiveChat, None, None]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
    monkeypatch.setenv("STORAGE_LOCAL_ROOT", str(tmp_path / "storage"))
    clear_settings_cache()
    reset_chat_manager()

    with TestClient(create_app()) as client:
        client.portal.call(_create_schema)
        yield LiveChat(client)

    reset_chat_manager()
    reset_storage()


def receive_until(ws, message_type: str, limit: int = 20) -> dict[str, Any]:
    """Read socket messages until one of the given type arrives."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"No {message_type} message within {limit} messages")


class TestSocketAuthentication:
    """Tests for socket authentication."""

    def test_query_token_connects(self, live: LiveChat) -> None:
        """Test that a valid token in the query string is accepted."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)

        with live.connect(alice) as ws:
            connected = ws.receive_json()

        assert connected == {
            "type": "connected",
            "user_id": alice.id,
            "conversation_ids": [conversation_id],
        }

    def test_auth_message_connects(self, live: LiveChat) -> None:
        """Test authenticating with the first message."""
        alice = live.member("Alice Cruz")

        with live.connect(alice, query_token=False) as ws:
            assert ws.receive_json()["type"] == "auth_required"
            ws.send_json({"type": "auth", "token": alice.token})
            connected = ws.receive_json()

        assert connected["type"] == "connected"
        assert connected["user_id"] == alice.id

    def test_bad_token_closes_with_policy_violation(self, live: LiveChat) -> None:
        """Test that a failed authentication closes the socket."""
        with live.connect() as ws:
            assert ws.receive_json()["type"] == "auth_required"
            ws.send_json({"type": "auth", "token": "not-a-jwt"})
            error = ws.receive_json()
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()

        assert error["code"] == "AUTH_FAILED"
        assert exc_info.value.code == 1008


class TestSocketMessaging:
    """Tests for realtime messaging."""

    def test_socket_message_reaches_both_members(self, live: LiveChat) -> None:
        """Test sending a message over the socket."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)

        with live.connect(alice) as alice_ws, live.connect(bob) as bob_ws:
            receive_until(alice_ws, "connected")
            receive_until(bob_ws, "connected")
            alice_ws.send_json({
                "type": "send_message",
                "conversation_id": conversation_id,
                "message_text": "Hello Bob",
            })
            to_bob = receive_until(bob_ws, "new_message")
            to_alice = receive_until(alice_ws, "new_message")

        assert to_bob["message"]["message_text"] == "Hello Bob"
        assert to_bob["message"]["sender_name"] == "Alice Cruz"
        assert to_alice["message"]["id"] == to_bob["message"]["id"]

    def test_rest_message_is_pushed(self, live: LiveChat) -> None:
        """Test that messages sent over REST are delivered to sockets."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)

        with live.connect(bob) as bob_ws:
            receive_until(bob_ws, "connected")
            live.client.post(
                f"/api/v1/chat/conversations/{conversation_id}/messages",
                json={"message_text": "Sent from the web app"},
                headers=alice.headers,
            )
            pushed = receive_until(bob_ws, "new_message")

        assert pushed["message"]["message_text"] == "Sent from the web app"

    def test_new_conversation_joins_open_sockets(self, live: LiveChat) -> None:
        """Test that members already connected join a new conversation's room."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")

        with live.connect(bob) as bob_ws:
            assert receive_until(bob_ws, "connected")["conversation_ids"] == []
            conversation_id = live.conversation(alice, bob)
            live.client.post(
                f"/api/v1/chat/conversations/{conversation_id}/messages",
                json={"message_text": "First message"},
                headers=alice.headers,
            )
            pushed = receive_until(bob_ws, "new_message")

        assert pushed["message"]["conversation_id"] == conversation_id

    def test_invalid_socket_message(self, live: LiveChat) -> None:
        """Test that an empty message reports a message error."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)

        with live.connect(alice) as ws:
            receive_until(ws, "connected")
            ws.send_json({"type": "send_message", "conversation_id": conversation_id})
            error = receive_until(ws, "message_error")

        assert error["conversation_id"] == conversation_id

    def test_typing_is_relayed_to_others(self, live: LiveChat) -> None:
        """Test typing indicators within a conversation."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)

        with live.connect(alice) as alice_ws, live.connect(bob) as bob_ws:
            receive_until(alice_ws, "connected")
            receive_until(bob_ws, "connected")
            alice_ws.send_json({"type": "typing_start", "conversation_id": conversation_id})
            alice_ws.send_json({"type": "ping"})
            typing = receive_until(bob_ws, "user_typing")
            pong = receive_until(alice_ws, "pong")

        assert typing["user_id"] == alice.id
        assert typing["name"] == "Alice Cruz"
        assert "timestamp" in pong

    def test_mark_read_notifies_sender(self, live: LiveChat) -> None:
        """Test read receipts over the socket."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        conversation_id = live.conversation(alice, bob)
        live.client.post(
            f"/api/v1/chat/conversations/{conversation_id}/messages",
            json={"message_text": "Are you there?"},
            headers=alice.headers,
        )

        with live.connect(alice) as alice_ws, live.connect(bob) as bob_ws:
            receive_until(alice_ws, "connected")
            receive_until(bob_ws, "connected")
            bob_ws.send_json({"type": "mark_read", "conversation_id": conversation_id})
            receipt = receive_until(alice_ws, "messages_read")

        assert receipt == {
            "type": "messages_read",
            "conversation_id": conversation_id,
            "user_id": bob.id,
        }


class TestSocketControl:
    """Tests for control messages, membership checks and presence."""

    def test_unknown_message_type(self, live: LiveChat) -> None:
        """Test the error for unknown message types."""
        alice = live.member("Alice Cruz")

        with live.connect(alice) as ws:
            receive_until(ws, "connected")
            ws.send_json({"type": "dance"})
            error = receive_until(ws, "error")

        assert error["code"] == "UNKNOWN_MESSAGE_TYPE"

    def test_non_json_message(self, live: LiveChat) -> None:
        """Test that plain text frames are rejected."""
        alice = live.member("Alice Cruz")

        with live.connect(alice) as ws:
            receive_until(ws, "connected")
            ws.send_text("hello")
            error = receive_until(ws, "error")

        assert error["code"] == "INVALID_MESSAGE"

    def test_join_foreign_conversation(self, live: LiveChat) -> None:
        """Test that only members can join a conversation room."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")
        carol = live.member("Carol Lim")
        conversation_id = live.conversation(alice, bob)

        with live.connect(carol) as ws:
            receive_until(ws, "connected")
            ws.send_json({"type": "join_conversation", "conversation_id": conversation_id})
            error = receive_until(ws, "error")

        assert error["code"] == "FORBIDDEN"

    def test_presence_follows_connections(self, live: LiveChat) -> None:
        """Test online and offline presence around a connection."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")

        with live.connect(alice) as alice_ws:
            receive_until(alice_ws, "connected")
            with live.connect(bob) as bob_ws:
                receive_until(bob_ws, "connected")
                online = receive_until(alice_ws, "user_online")
                while online["user_id"] != bob.id:
                    online = receive_until(alice_ws, "user_online")
                listed = live.online(alice)
            offline = receive_until(alice_ws, "user_offline")

        assert listed == {alice.id, bob.id}
        assert offline["user_id"] == bob.id

    def test_notifications_are_pushed(self, live: LiveChat) -> None:
        """Test that new notifications reach the recipient's socket."""
        counselor = live.member("Gail Guidance", role="guidance")
        alice = live.member("Alice Cruz")

        with live.connect(alice) as ws:
            receive_until(ws, "connected")
            live.client.post(
                "/api/v1/guidance/notify",
                json={"recipient_id": alice.id, "title": "Check-in", "message": "See you at 3"},
                headers=counselor.headers,
            )
            pushed = receive_until(ws, "notification")

        assert pushed["notification"]["title"] == "Check-in"
        assert pushed["notification"]["recipient_id"] == alice.id

    def test_abrupt_exits_leave_user_offline(self, live: LiveChat) -> None:
        """Test that sockets torn down by the client still finish their cleanup."""
        alice = live.member("Alice Cruz")
        bob = live.member("Bob Reyes")

        for _ in range(15):
            with live.client.websocket_connect(WS_PATH) as ws:
                assert ws.receive_json()["type"] == "auth_required"
                ws.send_json({"type": "auth", "token": alice.token})
                assert ws.receive_json()["type"] == "connected"

        assert live.online(bob) == set()
        assert get_chat_manager().connection_count == 0
