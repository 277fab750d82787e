# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member model and its profile enumerations.

A member is soft-deleted by setting ``deleted`` and ``deleted_at``
together. The row stays restorable for the configured restore window
and is hard-deleted by the daily purge after that.
"""

from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from tripfriend.infrastructure.database.models.base import Base, TimestampMixin
from tripfriend.utils.datetime import ensure_utc, utc_now


class Gender(str, Enum):
    """Member gender."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class AgeRange(str, Enum):
    """Member age range."""

    TEENS = "TEENS"
    TWENTIES = "TWENTIES"
    THIRTIES = "THIRTIES"
    FORTIES_PLUS = "FORTIES_PLUS"
    UNKNOWN = "UNKNOWN"


class MemberTravelStyle(str, Enum):
    """Preferred travel style shown on a member profile."""

    TOURISM = "TOURISM"
    RELAXATION = "RELAXATION"
    SHOPPING = "SHOPPING"
    ADVENTURE = "ADVENTURE"
    GOURMET = "GOURMET"
    UNKNOWN = "UNKNOWN"


class Authority(str, Enum):
    """Member role."""

    USER = "USER"
    ADMIN = "ADMIN"


class Member(TimestampMixin, Base):
    """Registered member."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    nickname: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    profile_image: Mapped[str | None] = mapped_column(String(500))
    gender: Mapped[Gender] = mapped_column(
        SAEnum(Gender, native_enum=False, length=20),
        default=Gender.UNKNOWN,
        nullable=False,
    )
    age_range: Mapped[AgeRange] = mapped_column(
        SAEnum(AgeRange, native_enum=False, length=20),
        default=AgeRange.UNKNOWN,
        nullable=False,
    )
    travel_style: Mapped[MemberTravelStyle] = mapped_column(
        SAEnum(MemberTravelStyle, native_enum=False, length=20),
        default=MemberTravelStyle.UNKNOWN,
        nullable=False,
    )
    about_me: Mapped[str | None] = mapped_column(Text)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    authority: Mapped[str] = mapped_column(String(20), default=Authority.USER.value, nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    provider: Mapped[str | None] = mapped_column(String(30))
    provider_id: Mapped[str | None] = mapped_column(String(100))
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def mark_deleted(self, at: datetime | None = None) -> None:
        """Soft-delete the member. Sets both deletion fields."""
        self.deleted = True
        self.deleted_at = at or utc_now()

    def clear_deleted(self) -> None:
        """Undo a soft delete. Clears both deletion fields."""
        self.deleted = False
        self.deleted_at = None

    def restore_deadline(self, window: timedelta) -> datetime | None:
        """Return the instant after which the account can no longer be restored."""
        if self.deleted_at is None:
            return None
        return ensure_utc(self.deleted_at) + window

    def can_be_restored(self, window: timedelta, now: datetime | None = None) -> bool:
        """Check whether a soft-deleted member is still inside the restore window."""
        deadline = self.restore_deadline(window)
        if not self.deleted or deadline is None:
            return False
        return (now or utc_now()) < deadline

    def __repr__(self) -> str:
        return f"<Member id={self.id} username={self.username!r} deleted={self.deleted}>"
