# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service for session management.

This module provides the AuthService that orchestrates:
- Password login, including recovery-mode login for soft-deleted accounts
- Session start for members authenticated by a social login provider
- Logout through the token blacklist
- Access token refresh with refresh token rotation
- Resolving the member behind a presented access token

A token is accepted only when it is well-signed, unexpired, not
blacklisted, and equal to the token the credential store currently
records for its subject. A second login therefore replaces the first
session for the same username.

Example:
    >>> auth_service = AuthService(db, codec, credential_store, PasswordHasher())
    >>> result = await auth_service.login("traveler01", "secret")
    >>> member = await auth_service.resolve_current_member(result.access_token)
"""

from datetime import timedelta

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.exceptions import (
    AccountPermanentlyDeletedError,
    InvalidCredentialsError,
    MemberNotFoundError,
    NoStoredSessionError,
    RefreshTokenExpiredError,
    SessionMismatchError,
    TokenExpiredError,
    TokenMalformedError,
    TokenRevokedError,
)
from tripfriend.domains.auth.jwt import TokenCodec
from tripfriend.domains.auth.password import PasswordHasher
from tripfriend.infrastructure.database.models import Member
from tripfriend.utils.datetime import utc_now
from tripfriend.utils.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


class LoginResult(BaseModel):
    """Tokens issued by a login.

    Attributes:
        access_token: JWT access token.
        refresh_token: JWT refresh token.
        recovery_mode: True when the account is soft-deleted and the
            client should offer restoration.
        role: Member role carried by the tokens.
    """

    access_token: str
    refresh_token: str
    recovery_mode: bool
    role: str


class RefreshResult(BaseModel):
    """Tokens returned by a refresh.

    Attributes:
        access_token: Newly minted access token.
        refresh_token: Current refresh token, rotated or unchanged.
        rotated: Whether a new refresh token was minted.
        recovery_mode: True when the session is a recovery-mode session.
    """

    access_token: str
    refresh_token: str
    rotated: bool
    recovery_mode: bool = False


def strip_bearer_prefix(token: str | None) -> str | None:
    """Remove a literal "Bearer " prefix from a presented token.

    Args:
        token: Raw header or cookie value.

    Returns:
        The bare token, or None if nothing was presented.
    """
    if token is None:
        return None
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    token = token.strip()
    return token or None


class AuthService:
    """Authentication service for session management.

    Attributes:
        _db: Database session for member lookups.
        _codec: Token codec.
        _store: Credential store holding the current tokens and blacklist.
        _password_hasher: Password hasher.
        _restore_window: How long a soft-deleted account stays restorable.
        _rotation_threshold: Fraction of the refresh lifetime below which
            refresh also rotates the refresh token.
    """

    def __init__(
        self,
        db: AsyncSession,
        token_codec: TokenCodec,
        credential_store: CredentialStore,
        password_hasher: PasswordHasher,
        restore_window: timedelta = timedelta(days=30),
        rotation_threshold: float = 0.3,
    ) -> None:
        """Initialize the authentication service.

        Args:
            db: Async database session.
            token_codec: Token codec.
            credential_store: Credential store.
            password_hasher: Password hasher.
            restore_window: Restore window for soft-deleted accounts.
            rotation_threshold: Refresh rotation threshold.
        """
        self._db = db
        self._codec = token_codec
        self._store = credential_store
        self._password_hasher = password_hasher
        self._restore_window = restore_window
        self._rotation_threshold = rotation_threshold

    async def login(self, username: str, password: str) -> LoginResult:
        """Authenticate with username and password.

        A soft-deleted account inside its restore window is logged in
        with recovery-mode tokens.

        Args:
            username: Member username.
            password: Plain text password.

        Returns:
            LoginResult with the new token pair.

        Raises:
            InvalidCredentialsError: If the username is unknown or the
                password does not match.
            AccountPermanentlyDeletedError: If the account is past its
                restore window.
        """
        member = await self._get_member(username)
        if member is None or not self._password_hasher.verify(password, member.password):
            logger.warning("Login failed: username=%s", username)
            raise InvalidCredentialsError()

        return await self.login_member(member)

    async def login_member(self, member: Member) -> LoginResult:
        """Open a session for a member whose identity is already established.

        Used after a password check or a social login. A soft-deleted
        account inside its restore window gets recovery-mode tokens.

        Raises:
            AccountPermanentlyDeletedError: If the account is past its
                restore window.
        """
        recovering = False
        if member.deleted:
            if not member.can_be_restored(self._restore_window):
                logger.warning(
                    "Login rejected for purged account: username=%s", member.username
                )
                raise AccountPermanentlyDeletedError()
            recovering = True

        return await self.issue_session(member, recovering=recovering)

    async def issue_session(self, member: Member, recovering: bool = False) -> LoginResult:
        """Mint a token pair for a member and record it as current.

        Any tokens previously recorded for the username are replaced.

        Args:
            member: The authenticated member.
            recovering: Issue recovery-mode tokens.

        Returns:
            LoginResult with the new token pair.
        """
        access_token = self._codec.issue_access_token(
            member.username, member.authority, member.verified, recovering
        )
        refresh_token = self._codec.issue_refresh_token(
            member.username, member.authority, member.verified, recovering
        )

        await self._store.save_access_token(
            member.username,
            access_token,
            self._codec.lifetime_seconds("access", recovering),
        )
        await self._store.save_refresh_token(
            member.username,
            refresh_token,
            self._codec.lifetime_seconds("refresh", recovering),
        )

        logger.info(
            "Session issued: username=%s, recovery_mode=%s",
            member.username,
            recovering,
        )

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            recovery_mode=recovering,
            role=member.authority,
        )

    async def logout(self, presented_token: str | None) -> None:
        """Revoke an access token and drop the stored refresh token.

        Calling without a token, or with a token that is already
        blacklisted, does nothing.

        Args:
            presented_token: Access token, with or without "Bearer ".

        Raises:
            TokenMalformedError: If the token cannot be parsed.
        """
        token = strip_bearer_prefix(presented_token)
        if token is None:
            return

        if await self._store.is_blacklisted(token):
            return

        claims = self._codec.parse_claims(token)
        remaining = (claims.expires_at - utc_now()).total_seconds()

        await self._store.add_to_blacklist(token, remaining)
        await self._store.delete_refresh_token(claims.sub)
        if await self._store.get_access_token(claims.sub) == token:
            await self._store.delete_access_token(claims.sub)

        logger.info("Logged out: username=%s", claims.sub)

    async def refresh(self, presented_access_token: str | None) -> RefreshResult:
        """Mint a new access token from a possibly expired one.

        The refresh token itself is never presented; the one recorded
        for the subject is used. It is rotated when less than the
        configured fraction of its nominal lifetime remains.

        Args:
            presented_access_token: Access token, with or without "Bearer ".

        Returns:
            RefreshResult with the new access token and the current
            refresh token.

        Raises:
            TokenMalformedError: If the access token cannot be parsed.
            NoStoredSessionError: If no refresh token is recorded.
            RefreshTokenExpiredError: If the recorded refresh token expired.
        """
        token = strip_bearer_prefix(presented_access_token)
        if token is None:
            raise TokenMalformedError("No access token presented")

        claims = self._codec.parse_claims(token)
        if claims.type != "access":
            raise TokenMalformedError("Expected an access token")

        username = claims.sub
        stored_refresh = await self._store.get_refresh_token(username)
        if stored_refresh is None:
            logger.warning("Refresh without stored session: username=%s", username)
            raise NoStoredSessionError()

        if self._codec.is_expired(stored_refresh):
            logger.warning("Refresh with expired refresh token: username=%s", username)
            raise RefreshTokenExpiredError()

        new_access = self._codec.issue_access_token(
            username, claims.role, claims.verified, claims.recovering
        )
        await self._store.save_access_token(
            username,
            new_access,
            self._codec.lifetime_seconds("access", claims.recovering),
        )

        refresh_token = stored_refresh
        rotated = False
        if self._should_rotate(stored_refresh, claims.recovering):
            refresh_token = self._codec.issue_refresh_token(
                username, claims.role, claims.verified, claims.recovering
            )
            await self._store.save_refresh_token(
                username,
                refresh_token,
                self._codec.lifetime_seconds("refresh", claims.recovering),
            )
            rotated = True

        logger.info("Tokens refreshed: username=%s, rotated=%s", username, rotated)

        return RefreshResult(
            access_token=new_access,
            refresh_token=refresh_token,
            rotated=rotated,
            recovery_mode=claims.recovering,
        )

    async def resolve_current_member(self, presented_token: str | None) -> Member:
        """Resolve the member behind a presented access token.

        Checks run in a fixed order: blacklist, current-session match,
        expiry, member lookup.

        Args:
            presented_token: Access token, with or without "Bearer ".

        Returns:
            The authenticated Member.

        Raises:
            TokenMalformedError: If no token is presented or it cannot be parsed.
            TokenRevokedError: If the token was blacklisted by logout.
            SessionMismatchError: If the token is not the current one.
            TokenExpiredError: If the token has expired.
            MemberNotFoundError: If the subject no longer exists.
        """
        token = strip_bearer_prefix(presented_token)
        if token is None:
            raise TokenMalformedError("No access token presented")

        if await self._store.is_blacklisted(token):
            raise TokenRevokedError()

        username = self._codec.extract_subject(token)
        if await self._store.get_access_token(username) != token:
            raise SessionMismatchError()

        if self._codec.is_expired(token):
            raise TokenExpiredError()

        member = await self._get_member(username)
        if member is None:
            raise MemberNotFoundError()

        return member

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_member(self, username: str) -> Member | None:
        stmt = select(Member).where(Member.username == username)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    def _should_rotate(self, refresh_token: str, recovering: bool) -> bool:
        try:
            remaining = self._codec.remaining_seconds(refresh_token)
        except TokenMalformedError:
            return True
        nominal = self._codec.lifetime_seconds("refresh", recovering)
        return remaining < nominal * self._rotation_threshold
