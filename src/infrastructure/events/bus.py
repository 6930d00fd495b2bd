# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus for SchoolPortal.

Services publish domain events (a chat message was stored, a notification
was created) and the realtime layer subscribes to push them to connected
sockets. Handlers subscribe by exact event type or by fnmatch pattern.

When several API workers run, a forwarder (see ``relay.py``) copies
locally published events to Redis, and events arriving from other
workers are handed to ``dispatch`` so they reach local subscribers
without being forwarded again.

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    event_bus = get_event_bus()

    async def on_message(event):
        print(event.payload["conversation_id"])

    event_bus.subscribe(EventTypes.Chat.MESSAGE_CREATED, on_message)
    event_bus.subscribe("chat.*", on_any_chat_event)

    await event_bus.publish(
        EventTypes.Chat.MESSAGE_CREATED,
        {"conversation_id": "c-1", "message": {...}},
    )
"""

import asyncio
import fnmatch
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None]]
EventForwarder = Callable[["EventData"], Awaitable[None]]

# Identifies this process on relayed events
PROCESS_ORIGIN = f"{os.getpid()}-{uuid4().hex[:8]}"


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The event type string.
        payload: The event payload data.
        event_id: Unique event identifier.
        timestamp: When the event was published.
        origin: Process that published the event.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)
    origin: str = PROCESS_ORIGIN

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "origin": self.origin,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventData":
        """Rebuild an event received from another process."""
        return cls(
            event_type=data["event_type"],
            payload=data.get("payload") or {},
            event_id=data.get("event_id") or str(uuid4()),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else utc_now(),
            origin=data.get("origin") or "unknown",
        )


def _is_pattern(event_type: str) -> bool:
    return "*" in event_type or "?" in event_type


class EventBus:
    """In-memory async event bus with pattern matching support.

    Designed for single-threaded async use inside one process. Cross-process
    delivery goes through forwarders registered with ``add_forwarder``.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}
        self._forwarders: list[EventForwarder] = []
        self._event_count = 0

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or wildcard pattern.

        Args:
            event_type: Event type string or pattern with wildcards.
            handler: Async function called with the EventData.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        registry.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Unsubscribe a handler.

        Returns:
            True if the handler was found and removed.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        handlers = registry.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del registry[event_type]
        return True

    def add_forwarder(self, forwarder: EventForwarder) -> None:
        """Register a coroutine that receives every locally published event."""
        self._forwarders.append(forwarder)

    def remove_forwarder(self, forwarder: EventForwarder) -> None:
        if forwarder in self._forwarders:
            self._forwarders.remove(forwarder)

    async def publish(self, event_type: str, payload: dict[str, Any]) -> EventData:
        """Publish an event locally and hand it to the forwarders.

        Args:
            event_type: The event type string.
            payload: JSON-serializable event data.

        Returns:
            The published EventData.
        """
        event = EventData(event_type=event_type, payload=payload)
        await self.dispatch(event)

        for forwarder in list(self._forwarders):
            try:
                await forwarder(event)
            except Exception as e:
                logger.error("Event forwarder failed for %s: %s", event_type, str(e), exc_info=True)

        return event

    async def dispatch(self, event: EventData) -> None:
        """Deliver an event to matching local handlers.

        Handlers run concurrently. A failing handler is logged and does not
        affect the others.
        """
        self._event_count += 1

        handlers_to_call: list[EventHandler] = list(self._handlers.get(event.event_type, []))
        for pattern, pattern_handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event.event_type, pattern):
                handlers_to_call.extend(pattern_handlers)

        if not handlers_to_call:
            logger.debug("No handlers for event: %s", event.event_type)
            return

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event.event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(handler) for handler in handlers_to_call])

    def clear(self) -> None:
        """Remove all subscriptions and forwarders."""
        self._handlers.clear()
        self._pattern_handlers.clear()
        self._forwarders.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get subscription and event counts."""
        exact_count = sum(len(h) for h in self._handlers.values())
        pattern_count = sum(len(h) for h in self._pattern_handlers.values())

        return {
            "exact_subscriptions": len(self._handlers),
            "pattern_subscriptions": len(self._pattern_handlers),
            "total_handlers": exact_count + pattern_count,
            "forwarders": len(self._forwarders),
            "events_dispatched": self._event_count,
        }


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the singleton. Used by tests for a clean state."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
