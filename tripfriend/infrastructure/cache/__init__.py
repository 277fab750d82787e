# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

Redis backs the credential store (current access/refresh tokens and the
logout blacklist) and short-lived email verification codes.

Example:
    from tripfriend.infrastructure.cache import init_redis, get_redis

    # Initialize at application startup
    await init_redis(settings)

    redis = get_redis()
    await redis.set("access:traveler01", token, expire_seconds=1800)

    # Cleanup at shutdown
    await close_redis()
"""

from tripfriend.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
]
