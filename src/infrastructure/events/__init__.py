# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure.

- EventBus: In-memory pub/sub with pattern matching
- EventTypes: Event type constants
- RedisEventRelay: Cross-worker delivery of realtime events

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    await get_event_bus().publish(
        EventTypes.Notification.CREATED,
        {"recipient_id": "u-1", "notification": {...}},
    )
"""

from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.relay import RedisEventRelay
from src.infrastructure.events.types import EventPatterns, EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    "EventTypes",
    "EventPatterns",
    "RedisEventRelay",
]
