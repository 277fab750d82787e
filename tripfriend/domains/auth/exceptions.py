# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication error taxonomy.

Every error carries a stable ``code`` that the API layer returns to
clients next to the message. The hierarchy groups errors by what the
caller is expected to do next:

- CredentialsError: the login attempt itself failed.
- ReauthenticationRequiredError: the presented token cannot be used; the
  client should send the member back to login.
- RestoreWindowExpiredError: terminal, the account cannot be recovered.

Store failures (RedisError, DatabaseError) are deliberately not part of
this hierarchy.
"""


class AuthError(Exception):
    """Base exception for authentication outcomes."""

    code = "401-0"
    default_message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class CredentialsError(AuthError):
    """Raised when a login attempt is rejected."""


class InvalidCredentialsError(CredentialsError):
    """Raised when the username is unknown or the password does not match."""

    code = "401-1"
    default_message = "Invalid username or password"


class AccountPermanentlyDeletedError(CredentialsError):
    """Raised when a soft-deleted account is past its restore window."""

    code = "410-1"
    default_message = "Account has been permanently deleted"


class SocialLoginError(CredentialsError):
    """Raised when a social login cannot be completed.

    Covers a missing or replayed state, a rejected authorization code
    and a provider that answers with an unusable profile.
    """

    code = "401-8"
    default_message = "Social login failed"


class UnknownProviderError(AuthError):
    """Raised for a social login provider that is unknown or not configured."""

    code = "404-4"
    default_message = "Unknown login provider"


class ReauthenticationRequiredError(AuthError):
    """Raised when the presented token cannot authorize the request."""


class TokenMalformedError(ReauthenticationRequiredError):
    """Raised when a token's signature or structure is invalid."""

    code = "401-2"
    default_message = "Malformed token"


class TokenExpiredError(ReauthenticationRequiredError):
    """Raised when a token's expiry has passed."""

    code = "401-3"
    default_message = "Token has expired"


class TokenRevokedError(ReauthenticationRequiredError):
    """Raised when a token was blacklisted by logout."""

    code = "401-4"
    default_message = "Token has been revoked"


class SessionMismatchError(ReauthenticationRequiredError):
    """Raised when a token is not the one currently recorded for its subject."""

    code = "401-5"
    default_message = "Token is not the current session token"


class NoStoredSessionError(ReauthenticationRequiredError):
    """Raised when no refresh token is recorded for the subject."""

    code = "401-6"
    default_message = "No stored session"


class RefreshTokenExpiredError(ReauthenticationRequiredError):
    """Raised when the stored refresh token has expired."""

    code = "401-7"
    default_message = "Refresh token has expired"


class MemberNotFoundError(AuthError):
    """Raised when a token's subject no longer resolves to a member."""

    code = "404-1"
    default_message = "Member not found"


class RestoreWindowExpiredError(AuthError):
    """Raised when restoring an account after its restore window closed."""

    code = "410-2"
    default_message = "Restore window has expired"


class AccessDeniedError(AuthError):
    """Raised when the resolved member lacks the required role or state."""

    code = "403-1"
    default_message = "Access denied"
