# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential store for the current session tokens and the logout blacklist.

Keyspace:
    access:{username}    -> the access token currently issued to the member
    refresh:{username}   -> the refresh token currently issued to the member
    blacklist:{token}    -> "logout", kept for the token's remaining lifetime

A token is only honoured while it equals the value recorded here, so a
new login replaces any earlier session for the same username. Every
write is a single SET with expiry, which keeps each key update atomic
without in-process locking.

Example:
    >>> store = CredentialStore(get_redis())
    >>> await store.save_access_token("traveler01", token, ttl_seconds=1800)
    >>> await store.get_access_token("traveler01") == token
    True
"""

import logging
import math
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueBackend(Protocol):
    """Minimal key-value interface the credential store needs.

    RedisClient implements it. Tests use an in-memory fake.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, expire_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def exists(self, key: str) -> bool: ...


class CredentialStore:
    """Records which tokens are currently valid per username.

    Attributes:
        _backend: Key-value backend holding the records.
    """

    ACCESS_PREFIX = "access:"
    REFRESH_PREFIX = "refresh:"
    BLACKLIST_PREFIX = "blacklist:"
    BLACKLIST_MARKER = "logout"

    def __init__(self, backend: KeyValueBackend) -> None:
        """Initialize the credential store.

        Args:
            backend: Key-value backend, usually the Redis client.
        """
        self._backend = backend

    async def save_access_token(self, username: str, token: str, ttl_seconds: int) -> None:
        """Record the current access token, replacing any previous one."""
        await self._backend.set(self.ACCESS_PREFIX + username, token, expire_seconds=ttl_seconds)

    async def save_refresh_token(self, username: str, token: str, ttl_seconds: int) -> None:
        """Record the current refresh token, replacing any previous one."""
        await self._backend.set(self.REFRESH_PREFIX + username, token, expire_seconds=ttl_seconds)

    async def get_access_token(self, username: str) -> str | None:
        """Return the access token currently recorded for a username."""
        return await self._backend.get(self.ACCESS_PREFIX + username)

    async def get_refresh_token(self, username: str) -> str | None:
        """Return the refresh token currently recorded for a username."""
        return await self._backend.get(self.REFRESH_PREFIX + username)

    async def delete_access_token(self, username: str) -> bool:
        """Forget the access token recorded for a username."""
        return await self._backend.delete(self.ACCESS_PREFIX + username)

    async def delete_refresh_token(self, username: str) -> bool:
        """Forget the refresh token recorded for a username."""
        return await self._backend.delete(self.REFRESH_PREFIX + username)

    async def delete_session(self, username: str) -> None:
        """Forget both tokens recorded for a username."""
        await self.delete_access_token(username)
        await self.delete_refresh_token(username)

    async def add_to_blacklist(self, token: str, remaining_seconds: float) -> None:
        """Blacklist an access token.

        The entry lives at least as long as the token could still be
        used, and never less than one second.

        Args:
            token: The access token to revoke.
            remaining_seconds: Seconds until the token's own expiry.
        """
        ttl = max(math.ceil(remaining_seconds), 1)
        await self._backend.set(
            self.BLACKLIST_PREFIX + token,
            self.BLACKLIST_MARKER,
            expire_seconds=ttl,
        )
        logger.debug("Token blacklisted for %d seconds", ttl)

    async def is_blacklisted(self, token: str) -> bool:
        """Check whether an access token was revoked by logout."""
        return await self._backend.exists(self.BLACKLIST_PREFIX + token)
