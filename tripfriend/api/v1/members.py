# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member API endpoints.

This module provides endpoints for member accounts:
- POST / - Sign up
- GET / - List members (admin only)
- GET /me - My page
- PATCH /me - Update profile
- DELETE /me - Soft-delete the account
- POST /me/restore - Restore a soft-deleted account
- POST /email/code - Send an email verification code
- POST /email/verify - Confirm an email verification code
"""

import logging

from fastapi import APIRouter, Query, Request, Response, status
from pydantic import BaseModel

from tripfriend.api.dependencies import (
    AccessToken,
    AdminMember,
    CurrentMember,
    MemberServiceDep,
    VerificationServiceDep,
)
from tripfriend.api.errors import ErrorResponse
from tripfriend.api.middleware.auth import ACCESS_TOKEN_COOKIE
from tripfriend.api.middleware.rate_limit import (
    RATE_LIMIT_EMAIL_CODE,
    RATE_LIMIT_EMAIL_VERIFY,
    get_ip_only,
    limiter,
)
from tripfriend.domains.member.schemas import (
    EmailCodeRequest,
    EmailVerifyRequest,
    MemberJoinRequest,
    MemberResponse,
    MemberSummary,
    MemberUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    responses={409: {"model": ErrorResponse}},
)
async def join(
    data: MemberJoinRequest,
    member_service: MemberServiceDep,
) -> MemberResponse:
    """Create a new member account.

    Args:
        data: Sign-up request.
        member_service: Member service.

    Returns:
        The created member.
    """
    member = await member_service.join(data)
    return MemberResponse.model_validate(member)


@router.get(
    "",
    response_model=list[MemberSummary],
    summary="List members",
    description="List all members, including soft-deleted ones. Admin only.",
    responses={403: {"model": ErrorResponse}},
)
async def list_members(
    admin: AdminMember,
    member_service: MemberServiceDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> list[MemberSummary]:
    """List members for administrators."""
    members = await member_service.list_members(limit=limit, offset=offset)
    return [MemberSummary.model_validate(m) for m in members]


@router.get(
    "/me",
    response_model=MemberResponse,
    summary="My page",
    responses={401: {"model": ErrorResponse}},
)
async def get_my_page(member: CurrentMember) -> MemberResponse:
    """Get the authenticated member's profile."""
    return MemberResponse.model_validate(member)


@router.patch(
    "/me",
    response_model=MemberResponse,
    summary="Update profile",
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_my_profile(
    data: MemberUpdateRequest,
    member: CurrentMember,
    member_service: MemberServiceDep,
) -> MemberResponse:
    """Update the authenticated member's profile.

    Args:
        data: Fields to change.
        member: Authenticated member.
        member_service: Member service.

    Returns:
        The updated member.
    """
    updated = await member_service.update_profile(member, data)
    return MemberResponse.model_validate(updated)


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete account",
    description="""
    Soft-delete the account. The presented token is revoked and the
    stored session is dropped. The account can be restored by logging in
    again within the restore window.
    """,
    responses={401: {"model": ErrorResponse}},
)
async def delete_my_account(
    response: Response,
    token: AccessToken,
    member: CurrentMember,
    member_service: MemberServiceDep,
) -> None:
    """Soft-delete the authenticated member."""
    await member_service.soft_delete(member, token)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)


@router.post(
    "/me/restore",
    response_model=MessageResponse,
    summary="Restore account",
    description="""
    Restore a soft-deleted account using a recovery-mode token. The
    recovery session is dropped, so the member logs in again afterwards.
    """,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
    },
)
async def restore_my_account(
    response: Response,
    member: CurrentMember,
    member_service: MemberServiceDep,
) -> MessageResponse:
    """Restore the authenticated, soft-deleted member."""
    await member_service.restore(member)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return MessageResponse(message="Account restored. Please log in again.")


@router.post(
    "/email/code",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send email verification code",
    responses={503: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT_EMAIL_CODE, key_func=get_ip_only)
async def send_email_code(
    request: Request,
    data: EmailCodeRequest,
    verification_service: VerificationServiceDep,
) -> MessageResponse:
    """Mail a verification code to the given address.

    Args:
        request: HTTP request.
        data: Address to verify.
        verification_service: Email verification service.

    Returns:
        Acknowledgement.
    """
    await verification_service.send_code(data.email)
    return MessageResponse(message="Verification code sent")


@router.post(
    "/email/verify",
    response_model=MessageResponse,
    summary="Confirm email verification code",
    description="""
    Confirm a verification code. If a member is registered with the
    address, the member is marked as verified.
    """,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT_EMAIL_VERIFY, key_func=get_ip_only)
async def verify_email_code(
    request: Request,
    data: EmailVerifyRequest,
    verification_service: VerificationServiceDep,
    member_service: MemberServiceDep,
) -> MessageResponse:
    """Confirm a verification code.

    Args:
        request: HTTP request.
        data: Address and code.
        verification_service: Email verification service.
        member_service: Member service.

    Returns:
        Acknowledgement.
    """
    await verification_service.verify_code(data.email, data.code)

    member = await member_service.get_by_email(data.email)
    if member is not None:
        await member_service.mark_verified(member, data.email)

    return MessageResponse(message="Email verified")
