# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member domain services.

Exports:
    MemberService: Sign-up, profile, soft delete, restore and purge.
    EmailVerificationService: Email verification codes.
"""

from tripfriend.domains.member.service import (
    EmailMismatchError,
    MemberAlreadyExistsError,
    MemberService,
    MemberServiceError,
    NotDeletedMemberError,
)
from tripfriend.domains.member.verification import (
    EmailVerificationService,
    InvalidVerificationCodeError,
)

__all__ = [
    "MemberService",
    "MemberServiceError",
    "MemberAlreadyExistsError",
    "NotDeletedMemberError",
    "EmailMismatchError",
    "EmailVerificationService",
    "InvalidVerificationCodeError",
]
