# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis relay for realtime events.

Each worker forwards its locally published chat and notification events
to one Redis channel and dispatches events published by other workers to
its own bus. Events carry the publishing process in ``origin`` so a
worker never re-dispatches its own events.
"""

import asyncio
import fnmatch
import logging

from src.infrastructure.cache.redis_client import RedisClient, RedisError
from src.infrastructure.events.bus import PROCESS_ORIGIN, EventBus, EventData
from src.infrastructure.events.types import EventPatterns

logger = logging.getLogger(__name__)


class RedisEventRelay:
    """Bridges an EventBus to a Redis pub/sub channel."""

    def __init__(
        self,
        bus: EventBus,
        redis: RedisClient,
        channel: str,
        patterns: tuple[str, ...] = EventPatterns.REALTIME,
    ) -> None:
        self._bus = bus
        self._redis = redis
        self._channel = channel
        self._patterns = patterns
        self._listener: asyncio.Task | None = None

    def _should_relay(self, event_type: str) -> bool:
        return any(fnmatch.fnmatch(event_type, pattern) for pattern in self._patterns)

    async def _forward(self, event: EventData) -> None:
        if not self._should_relay(event.event_type):
            return
        try:
            await self._redis.publish_json(self._channel, event.to_dict())
        except RedisError as e:
            logger.warning("Could not relay %s: %s", event.event_type, e)

    async def _listen(self) -> None:
        async for data in self._redis.listen_json(self._channel):
            if data.get("origin") == PROCESS_ORIGIN:
                continue
            try:
                event = EventData.from_dict(data)
            except (KeyError, ValueError) as e:
                logger.warning("Ignoring malformed relayed event: %s", e)
                continue
            await self._bus.dispatch(event)

    async def start(self) -> None:
        """Register the forwarder and start listening."""
        self._bus.add_forwarder(self._forward)
        self._listener = asyncio.create_task(self._listen(), name="redis-event-relay")
        logger.info("Realtime relay started on channel %s", self._channel)

    async def stop(self) -> None:
        """Stop listening and unregister the forwarder."""
        self._bus.remove_forwarder(self._forward)
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except RedisError as e:
                logger.warning("Relay listener ended with error: %s", e)
            self._listener = None
