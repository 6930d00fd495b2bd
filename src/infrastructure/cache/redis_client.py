# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for pub/sub between API workers.

Redis is optional. When REDIS_ENABLED is set, realtime events (chat and
notifications) published in one worker are relayed to sockets held by
the other workers through a single pub/sub channel.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    await init_redis(settings)
    redis = get_redis()
    await redis.publish_json("schoolportal:events", {"event_type": "..."})
"""

import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

_redis_client: Optional["RedisClient"] = None


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis wrapper with a connection pool and JSON pub/sub helpers."""

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the connection pool and verify the server answers.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    async def publish_json(self, channel: str, message: dict[str, Any]) -> int:
        """Publish a JSON document to a channel.

        Returns:
            Number of subscribers that received the message.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            return await redis.publish(channel, json.dumps(message, default=str))
        except BaseRedisError as e:
            raise RedisError(f"Failed to publish to channel: {channel}", e) from e

    async def listen_json(self, channel: str) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded JSON documents published on a channel.

        Malformed payloads are logged and skipped. The subscription is
        released when the consumer stops iterating.
        """
        redis = self._ensure_connected()
        pubsub = redis.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(channel)
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (TypeError, ValueError):
                    logger.warning("Dropping malformed message on %s", channel)
        except BaseRedisError as e:
            raise RedisError(f"Subscription to {channel} failed", e) from e
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

    async def ping(self) -> bool:
        """Check whether Redis answers."""
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except BaseRedisError:
            return False


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client


def is_redis_initialized() -> bool:
    return _redis_client is not None
