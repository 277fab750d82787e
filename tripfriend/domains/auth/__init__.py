# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This package provides:
- Token codec for signed access and refresh tokens
- Credential store recording the current tokens and the logout blacklist
- Session management (login, logout, refresh, current member)
- Password hashing

Exports:
    TokenCodec: JWT creation and parsing.
    CredentialStore: Current-token and blacklist records.
    AuthService: Session management service.
    PasswordHasher: Password hashing using bcrypt.
"""

from tripfriend.domains.auth.credential_store import CredentialStore, KeyValueBackend
from tripfriend.domains.auth.jwt import TokenClaims, TokenCodec
from tripfriend.domains.auth.password import PasswordHasher
from tripfriend.domains.auth.service import (
    AuthService,
    LoginResult,
    RefreshResult,
    strip_bearer_prefix,
)

__all__ = [
    "TokenCodec",
    "TokenClaims",
    "CredentialStore",
    "KeyValueBackend",
    "AuthService",
    "LoginResult",
    "RefreshResult",
    "PasswordHasher",
    "strip_bearer_prefix",
]
