# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis infrastructure used to relay realtime events between workers.

Example:
    from src.infrastructure.cache import init_redis, get_redis, close_redis

    await init_redis(settings)
    await get_redis().publish_json("schoolportal:events", event.to_dict())
    await close_redis()
"""

from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
    is_redis_initialized,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
    "is_redis_initialized",
]
