# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the credential store and token codec
- Resolve the authenticated member
- Get service instances

Example:
    @router.get("/members/me")
    async def get_me(member: CurrentMember):
        ...
"""

import logging
from datetime import timedelta
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tripfriend.api.middleware.auth import extract_bearer_token
from tripfriend.core.config import Settings, get_settings
from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.exceptions import AccessDeniedError
from tripfriend.domains.auth.jwt import TokenCodec
from tripfriend.domains.auth.oauth import OAuthClient, SocialLoginService
from tripfriend.domains.auth.password import PasswordHasher
from tripfriend.domains.auth.service import AuthService
from tripfriend.domains.member.service import MemberService
from tripfriend.domains.member.verification import EmailVerificationService
from tripfriend.domains.recruit.service import RecruitService
from tripfriend.infrastructure.cache import RedisClient, get_redis
from tripfriend.infrastructure.database import get_session
from tripfriend.infrastructure.database.models import Member
from tripfriend.infrastructure.notifications.mail import MailSender, SmtpMailSender

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession bound to the request.
    """
    async with get_session() as session:
        yield session


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


# =========================================================================
# Store and Codec Dependencies
# =========================================================================


def get_redis_backend() -> RedisClient:
    """Get the shared Redis client.

    Returns:
        RedisClient initialized at startup.
    """
    return get_redis()


def get_credential_store(
    backend: RedisClient = Depends(get_redis_backend),
) -> CredentialStore:
    """Get credential store over the Redis backend."""
    return CredentialStore(backend)


def get_token_codec(settings: Settings = Depends(get_app_settings)) -> TokenCodec:
    """Get token codec instance.

    Returns:
        TokenCodec.
    """
    return TokenCodec(settings.jwt)


def get_password_hasher() -> PasswordHasher:
    """Get password hasher instance.

    Returns:
        PasswordHasher.
    """
    return PasswordHasher()


def get_mail_sender(settings: Settings = Depends(get_app_settings)) -> MailSender:
    """Get the SMTP mail sender."""
    return SmtpMailSender(settings.mail)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    """Get AuthService instance.

    Args:
        db: Database session.
        codec: Token codec.
        store: Credential store.
        hasher: Password hasher.
        settings: Application settings.

    Returns:
        AuthService.
    """
    return AuthService(
        db,
        codec,
        store,
        hasher,
        restore_window=timedelta(days=settings.account.restore_window_days),
        rotation_threshold=settings.jwt.refresh_rotation_threshold,
    )


def get_member_service(
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> MemberService:
    """Get MemberService instance."""
    return MemberService(
        db,
        auth_service,
        store,
        hasher,
        restore_window=timedelta(days=settings.account.restore_window_days),
    )


def get_verification_service(
    backend: RedisClient = Depends(get_redis_backend),
    mail_sender: MailSender = Depends(get_mail_sender),
    settings: Settings = Depends(get_app_settings),
) -> EmailVerificationService:
    """Get EmailVerificationService instance."""
    return EmailVerificationService(
        backend,
        mail_sender,
        code_ttl_seconds=settings.account.email_code_ttl_seconds,
    )


def get_recruit_service(db: AsyncSession = Depends(get_db)) -> RecruitService:
    """Get RecruitService instance."""
    return RecruitService(db)


def get_oauth_client(settings: Settings = Depends(get_app_settings)) -> OAuthClient:
    """Get the authorization server client."""
    return OAuthClient(settings.oauth)


def get_social_login_service(
    client: OAuthClient = Depends(get_oauth_client),
    backend: RedisClient = Depends(get_redis_backend),
    member_service: MemberService = Depends(get_member_service),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> SocialLoginService:
    """Get SocialLoginService instance."""
    return SocialLoginService(
        client,
        backend,
        member_service,
        auth_service,
        state_ttl_seconds=settings.oauth.state_ttl_seconds,
    )


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_access_token(request: Request) -> str | None:
    """Read the presented access token.

    A Bearer Authorization header wins over the ``accessToken`` cookie.

    Args:
        request: HTTP request.

    Returns:
        The bare token, or None if the request carries none.
    """
    return extract_bearer_token(request)


async def get_current_member(
    token: str | None = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Member:
    """Require an authenticated member.

    Raises:
        ReauthenticationRequiredError: If the token is missing or unusable.
        MemberNotFoundError: If the token's subject no longer exists.
    """
    return await auth_service.resolve_current_member(token)


async def get_optional_member(
    token: str | None = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Member | None:
    """Resolve the member if a token is presented.

    A request without a token is anonymous. A token that is presented
    but unusable still raises, so the client is sent back to login.

    Returns:
        Member or None.
    """
    if token is None:
        return None
    return await auth_service.resolve_current_member(token)


class RequireRole:
    """Dependency for requiring specific roles.

    Example:
        @router.get("/admin")
        async def admin_only(
            member: Member = Depends(RequireRole("ADMIN")),
        ):
            ...
    """

    def __init__(self, *roles: str) -> None:
        """Initialize role requirement.

        Args:
            roles: Accepted authority values (any of these).
        """
        self.roles = roles

    async def __call__(self, member: Member = Depends(get_current_member)) -> Member:
        """Check the member's authority.

        Args:
            member: The authenticated member.

        Returns:
            Member.

        Raises:
            AccessDeniedError: If the member lacks every accepted role.
        """
        if member.authority not in self.roles:
            logger.warning(
                "Access denied: username=%s, authority=%s, required=%s",
                member.username,
                member.authority,
                ",".join(self.roles),
            )
            raise AccessDeniedError(f"Requires role: {', '.join(self.roles)}")
        return member


require_admin = RequireRole("ADMIN")


# =========================================================================
# Type Aliases for Cleaner Endpoint Signatures
# =========================================================================

DB = Annotated[AsyncSession, Depends(get_db)]
AccessToken = Annotated[str | None, Depends(get_access_token)]
CurrentMember = Annotated[Member, Depends(get_current_member)]
OptionalMember = Annotated[Member | None, Depends(get_optional_member)]
AdminMember = Annotated[Member, Depends(require_admin)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
MemberServiceDep = Annotated[MemberService, Depends(get_member_service)]
RecruitServiceDep = Annotated[RecruitService, Depends(get_recruit_service)]
VerificationServiceDep = Annotated[EmailVerificationService, Depends(get_verification_service)]
SocialLoginServiceDep = Annotated[SocialLoginService, Depends(get_social_login_service)]
