# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from tripfriend.domains.auth.password import MAX_PASSWORD_BYTES, password_byte_length
from tripfriend.infrastructure.database.models import AgeRange, Gender, MemberTravelStyle


class MemberJoinRequest(BaseModel):
    """Sign-up request."""

    username: str = Field(..., min_length=4, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)
    nickname: str = Field(..., min_length=2, max_length=30)
    gender: Gender = Gender.UNKNOWN
    age_range: AgeRange = AgeRange.UNKNOWN
    travel_style: MemberTravelStyle = MemberTravelStyle.UNKNOWN
    about_me: str | None = Field(None, max_length=1000)
    profile_image: str | None = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt cannot hash in full."""
        if password_byte_length(value) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class MemberUpdateRequest(BaseModel):
    """Profile update. Only fields that are set are applied."""

    nickname: str | None = Field(None, min_length=2, max_length=30)
    gender: Gender | None = None
    age_range: AgeRange | None = None
    travel_style: MemberTravelStyle | None = None
    about_me: str | None = Field(None, max_length=1000)
    profile_image: str | None = None


class MemberResponse(BaseModel):
    """Full member profile, shown on the member's own page."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    nickname: str
    profile_image: str | None
    gender: Gender
    age_range: AgeRange
    travel_style: MemberTravelStyle
    about_me: str | None
    rating: float
    authority: str
    verified: bool
    deleted: bool
    deleted_at: datetime | None
    created_at: datetime


class MemberSummary(BaseModel):
    """Member row in the admin listing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    nickname: str
    email: str
    authority: str
    verified: bool
    deleted: bool


class EmailCodeRequest(BaseModel):
    """Request a verification code for an email address."""

    email: EmailStr


class EmailVerifyRequest(BaseModel):
    """Confirm an email address with the code that was sent to it."""

    email: EmailStr
    code: str = Field(..., pattern=r"^[0-9]{6}$")
