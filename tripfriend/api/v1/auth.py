# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for member authentication:
- POST /login - Username and password login
- POST /logout - Revoke the presented access token
- POST /refresh - Mint a new access token from the stored refresh token
- GET /me - Get the authenticated member
- GET /oauth/{provider} - Start a social login
- GET /oauth/{provider}/callback - Finish a social login

Tokens are returned in the body and the access token is also set as the
``accessToken`` cookie for browser clients. Social logins only set the
cookie and redirect to the frontend.

Example:
    POST /api/v1/auth/login
    Body:
        {"username": "traveler01", "password": "secret123"}
"""

import logging

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from tripfriend.api.dependencies import (
    AccessToken,
    AuthServiceDep,
    CurrentMember,
    SocialLoginServiceDep,
    get_app_settings,
)
from tripfriend.api.errors import ErrorResponse
from tripfriend.api.middleware.auth import ACCESS_TOKEN_COOKIE
from tripfriend.api.middleware.rate_limit import RATE_LIMIT_LOGIN, get_ip_only, limiter
from tripfriend.domains.member.schemas import MemberResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================================================================
# Request/Response Schemas
# =========================================================================


class LoginRequest(BaseModel):
    """Username and password login."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Token pair issued by login.

    ``recovery_mode`` tells the client the account is soft-deleted and
    restoration should be offered.
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    recovery_mode: bool
    authority: str


class RefreshResponse(BaseModel):
    """Tokens returned by a refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    rotated: bool
    recovery_mode: bool


def access_cookie_max_age(recovery_mode: bool) -> int:
    """Cookie lifetime in seconds, matching the access token it carries."""
    jwt_settings = get_app_settings().jwt
    minutes = (
        jwt_settings.recovery_access_token_expire_minutes
        if recovery_mode
        else jwt_settings.access_token_expire_minutes
    )
    return minutes * 60


def _set_access_cookie(response: Response, access_token: str, recovery_mode: bool) -> None:
    settings = get_app_settings()
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        max_age=access_cookie_max_age(recovery_mode),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with username and password",
    description="""
    Authenticate with username and password.

    A soft-deleted account still inside its restore window is logged in
    in recovery mode: ``recovery_mode`` is true and the tokens can only
    reach the restore, logout and refresh endpoints.

    A new login replaces any earlier session for the same username.
    """,
    responses={
        401: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT_LOGIN, key_func=get_ip_only)
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Login with username and password.

    Args:
        request: HTTP request.
        response: Response used to set the access token cookie.
        data: Login credentials.
        auth_service: Authentication service.

    Returns:
        TokenResponse with the new token pair.
    """
    result = await auth_service.login(data.username, data.password)
    _set_access_cookie(response, result.access_token, result.recovery_mode)

    return TokenResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        recovery_mode=result.recovery_mode,
        authority=result.role,
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Revoke the presented access token and drop the stored refresh token.",
    responses={401: {"model": ErrorResponse}},
)
async def logout(
    response: Response,
    token: AccessToken,
    auth_service: AuthServiceDep,
) -> None:
    """Revoke the presented access token.

    Presenting no token, or a token that is already revoked, succeeds
    without doing anything.

    Args:
        response: Response used to clear the cookie.
        token: Presented access token.
        auth_service: Authentication service.
    """
    await auth_service.logout(token)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh access token",
    description="""
    Exchange a (possibly expired) access token for a new one.

    The stored refresh token for the token's subject is used; it is
    rotated when little of its lifetime remains. A recovery-mode session
    stays in recovery mode.
    """,
    responses={401: {"model": ErrorResponse}},
)
async def refresh_token(
    response: Response,
    token: AccessToken,
    auth_service: AuthServiceDep,
) -> RefreshResponse:
    """Refresh the access token.

    Args:
        response: Response used to set the access token cookie.
        token: Presented access token.
        auth_service: Authentication service.

    Returns:
        RefreshResponse with the new access token.
    """
    result = await auth_service.refresh(token)
    _set_access_cookie(response, result.access_token, result.recovery_mode)

    return RefreshResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        rotated=result.rotated,
        recovery_mode=result.recovery_mode,
    )


@router.get(
    "/me",
    response_model=MemberResponse,
    summary="Get current member",
    responses={401: {"model": ErrorResponse}},
)
async def get_current_member_info(member: CurrentMember) -> MemberResponse:
    """Get the authenticated member.

    Args:
        member: Authenticated member.

    Returns:
        MemberResponse.
    """
    return MemberResponse.model_validate(member)


# =========================================================================
# Social Login
# =========================================================================


@router.get(
    "/oauth/{provider}",
    status_code=status.HTTP_302_FOUND,
    summary="Start a social login",
    description="Redirect to the provider's consent page. Providers: google, kakao, naver.",
    responses={404: {"model": ErrorResponse}},
)
async def start_social_login(
    provider: str,
    social_login: SocialLoginServiceDep,
) -> RedirectResponse:
    """Redirect the browser to the provider."""
    url = await social_login.begin(provider)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/oauth/{provider}/callback",
    status_code=status.HTTP_302_FOUND,
    summary="Finish a social login",
    description="""
    Called by the provider after consent. The linked member is created on
    the first login. The access token is set as the ``accessToken``
    cookie and the browser is sent to the frontend login page.
    """,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
    },
)
async def finish_social_login(
    provider: str,
    social_login: SocialLoginServiceDep,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
) -> RedirectResponse:
    """Open a session for the provider's account and redirect to the frontend.

    Args:
        provider: Provider name.
        social_login: Social login service.
        code: Authorization code.
        state: State issued when the login started.

    Returns:
        Redirect carrying the access token cookie.
    """
    result = await social_login.complete(provider, code, state)

    redirect = RedirectResponse(
        get_app_settings().oauth.success_redirect_url,
        status_code=status.HTTP_302_FOUND,
    )
    _set_access_cookie(redirect, result.access_token, result.recovery_mode)
    return redirect
