# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis key-value backend for session tokens and verification codes.

RedisClient is the production implementation of the KeyValueBackend
protocol: string keys, string values, an optional expiry per write.
Every redis-py failure is re-raised as RedisError, which the API maps to
503 and never to an authentication outcome.

Example:
    from tripfriend.infrastructure.cache import init_redis, get_redis

    await init_redis(settings)
    await get_redis().set("refresh:traveler01", token, expire_seconds=604800)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from redis.asyncio import Redis
from redis.exceptions import RedisError as BaseRedisError

from tripfriend.utils.logging import get_logger

if TYPE_CHECKING:
    from tripfriend.core.config.settings import RedisSettings, Settings

logger = get_logger(__name__)

_redis_client: "RedisClient | None" = None


class RedisError(Exception):
    """Raised when the Redis store is unreachable or a command fails.

    Attributes:
        message: What was being attempted.
        original_error: The redis-py exception, if any.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except BaseRedisError as e:
        logger.warning("Redis %s failed: %s", action, str(e))
        raise RedisError(f"Redis {action} failed", e) from e


class RedisClient:
    """String key-value store over a pooled redis-py client.

    Attributes:
        _settings: Redis connection settings.
        _redis: Connected client, None until connect() succeeds.
    """

    def __init__(self, settings: "RedisSettings") -> None:
        self._settings = settings
        self._redis: Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool and check the server answers.

        Raises:
            RedisError: If the server cannot be reached.
        """
        client = Redis.from_url(
            self._settings.url,
            max_connections=self._settings.max_connections,
            decode_responses=True,
        )
        with _store_errors("connect"):
            await client.ping()
        self._redis = client
        logger.info("Connected to Redis at %s:%s", self._settings.host, self._settings.port)

    async def close(self) -> None:
        """Close the client and its pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def _client(self) -> Redis:
        if self._redis is None:
            raise RedisError("Redis client is not connected")
        return self._redis

    async def get(self, key: str) -> str | None:
        """Return the value at ``key``, or None if it is absent or expired."""
        with _store_errors(f"GET {key}"):
            return await self._client.get(key)

    async def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """Replace the value at ``key`` in a single SET, with optional expiry."""
        with _store_errors(f"SET {key}"):
            await self._client.set(key, value, ex=expire_seconds)

    async def delete(self, key: str) -> bool:
        """Remove ``key``; True if it existed."""
        with _store_errors(f"DEL {key}"):
            return await self._client.delete(key) > 0

    async def exists(self, key: str) -> bool:
        with _store_errors(f"EXISTS {key}"):
            return await self._client.exists(key) > 0

    async def ping(self) -> bool:
        """Health check that reports failure instead of raising."""
        try:
            with _store_errors("PING"):
                return bool(await self._client.ping())
        except RedisError:
            return False


async def init_redis(settings: "Settings") -> None:
    """Connect the process-wide client. Called once at startup.

    Raises:
        RedisError: If the server cannot be reached.
    """
    global _redis_client

    client = RedisClient(settings.redis)
    await client.connect()
    _redis_client = client


async def close_redis() -> None:
    """Close the process-wide client, if any."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Return the process-wide client.

    Raises:
        RedisError: If init_redis() has not run.
    """
    if _redis_client is None:
        raise RedisError("Redis has not been initialized")
    return _redis_client
