# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token codec.

This module provides JWT creation and parsing using python-jose. Access
and refresh tokens share one claim layout: subject (username), role,
email-verified flag and the recovery flag that marks tokens issued to a
soft-deleted account still inside its restore window.

Parsing checks signature and structure only. Expiry is a separate
question answered by is_expired() so that callers like token refresh can
read an expired access token.

Example:
    >>> from tripfriend.core.config import get_settings
    >>> codec = TokenCodec(get_settings().jwt)
    >>> token = codec.issue_access_token("traveler01", "USER", verified=True)
    >>> codec.extract_subject(token)
    'traveler01'
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Literal

from jose import JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from tripfriend.core.config.settings import JWTSettings
from tripfriend.domains.auth.exceptions import TokenMalformedError
from tripfriend.utils.datetime import utc_from_timestamp, utc_now

logger = logging.getLogger(__name__)

TokenType = Literal["access", "refresh"]


class TokenClaims(BaseModel):
    """Decoded token claims.

    Attributes:
        sub: Subject (username).
        type: Token type (access or refresh).
        role: Member role (USER or ADMIN).
        verified: Whether the member verified their email.
        recovering: Whether the token was issued in recovery mode.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID, unique per token.
    """

    sub: str
    type: TokenType
    role: str
    verified: bool = False
    recovering: bool = False
    exp: int
    iat: int
    jti: str

    @property
    def expires_at(self) -> datetime:
        """Expiry as a timezone-aware datetime."""
        return utc_from_timestamp(self.exp)


class TokenCodec:
    """Issues and parses signed access and refresh tokens.

    The codec does no I/O. Whether a token is the current one for its
    subject, or has been revoked, is decided by the credential store.

    Example:
        >>> codec = TokenCodec(settings.jwt)
        >>> access = codec.issue_access_token("traveler01", "USER", True)
        >>> refresh = codec.issue_refresh_token("traveler01", "USER", True)
        >>> codec.parse_claims(access).recovering
        False
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the codec.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def lifetime(self, token_type: TokenType, recovering: bool = False) -> timedelta:
        """Nominal lifetime of a token.

        Args:
            token_type: Access or refresh.
            recovering: Whether the token is issued in recovery mode.

        Returns:
            The configured lifetime.
        """
        if token_type == "access":
            if recovering:
                return timedelta(minutes=self._settings.recovery_access_token_expire_minutes)
            return timedelta(minutes=self._settings.access_token_expire_minutes)

        if recovering:
            return timedelta(days=self._settings.recovery_refresh_token_expire_days)
        return timedelta(days=self._settings.refresh_token_expire_days)

    def lifetime_seconds(self, token_type: TokenType, recovering: bool = False) -> int:
        """Nominal lifetime of a token in whole seconds."""
        return int(self.lifetime(token_type, recovering).total_seconds())

    def issue_access_token(
        self,
        username: str,
        role: str,
        verified: bool,
        recovering: bool = False,
    ) -> str:
        """Create an access token.

        Args:
            username: Token subject.
            role: Member role.
            verified: Email-verified flag.
            recovering: Issue with the shorter recovery-mode lifetime.

        Returns:
            JWT access token string.
        """
        return self._issue("access", username, role, verified, recovering)

    def issue_refresh_token(
        self,
        username: str,
        role: str,
        verified: bool,
        recovering: bool = False,
    ) -> str:
        """Create a refresh token.

        Args:
            username: Token subject.
            role: Member role.
            verified: Email-verified flag.
            recovering: Issue with the shorter recovery-mode lifetime.

        Returns:
            JWT refresh token string.
        """
        return self._issue("refresh", username, role, verified, recovering)

    def parse_claims(self, token: str) -> TokenClaims:
        """Decode a token and verify its signature, ignoring expiry.

        Args:
            token: JWT token string.

        Returns:
            TokenClaims with decoded claims.

        Raises:
            TokenMalformedError: If the signature or structure is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
                options={"verify_exp": False},
            )
            return TokenClaims.model_validate(payload)
        except (JoseJWTError, ValidationError) as e:
            logger.warning("Token decode failed: %s", type(e).__name__)
            raise TokenMalformedError() from e

    def is_expired(self, token: str) -> bool:
        """Check whether a token has expired.

        Any parse failure counts as expired.

        Args:
            token: JWT token string.

        Returns:
            True if the token is expired or cannot be parsed.
        """
        try:
            claims = self.parse_claims(token)
        except TokenMalformedError:
            return True
        return claims.expires_at <= utc_now()

    def remaining_seconds(self, token: str) -> float:
        """Seconds left before a token expires, negative once expired.

        Raises:
            TokenMalformedError: If the token cannot be parsed.
        """
        claims = self.parse_claims(token)
        return (claims.expires_at - utc_now()).total_seconds()

    def extract_subject(self, token: str) -> str:
        """Return the token's subject (username)."""
        return self.parse_claims(token).sub

    def extract_role(self, token: str) -> str:
        """Return the token's role claim."""
        return self.parse_claims(token).role

    def extract_verified(self, token: str) -> bool:
        """Return the token's email-verified claim."""
        return self.parse_claims(token).verified

    def extract_recovery_flag(self, token: str) -> bool:
        """Return whether the token was issued in recovery mode."""
        return self.parse_claims(token).recovering

    def _issue(
        self,
        token_type: TokenType,
        username: str,
        role: str,
        verified: bool,
        recovering: bool,
    ) -> str:
        now = utc_now()
        exp = now + self.lifetime(token_type, recovering)

        payload = {
            "sub": username,
            "type": token_type,
            "role": role,
            "verified": verified,
            "recovering": recovering,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )
