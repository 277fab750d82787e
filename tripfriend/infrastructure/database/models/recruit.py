# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Travel companion recruitment post model."""

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripfriend.infrastructure.database.models.base import Base, TimestampMixin
from tripfriend.infrastructure.database.models.member import Member
from tripfriend.infrastructure.database.models.place import Place


class TravelStyle(str, Enum):
    """Travel style of a recruitment post."""

    SIGHTSEEING = "SIGHTSEEING"
    RELAXATION = "RELAXATION"
    ADVENTURE = "ADVENTURE"
    GOURMET = "GOURMET"
    SHOPPING = "SHOPPING"


class Recruit(TimestampMixin, Base):
    """Recruitment post looking for travel companions.

    ``same_gender`` and ``same_age`` restrict the post to members sharing
    the owner's gender or age range.
    """

    __tablename__ = "recruits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    place_id: Mapped[int] = mapped_column(ForeignKey("places.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    travel_style: Mapped[TravelStyle] = mapped_column(
        SAEnum(TravelStyle, native_enum=False, length=20),
        nullable=False,
    )
    same_gender: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    same_age: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    budget: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    group_size: Mapped[int] = mapped_column(Integer, default=2, nullable=False)

    member: Mapped[Member] = relationship(lazy="joined")
    place: Mapped[Place] = relationship(lazy="joined")

    def is_owned_by(self, member: Member) -> bool:
        """Check whether the given member authored this post."""
        return self.member_id == member.id

    def __repr__(self) -> str:
        return f"<Recruit id={self.id} title={self.title!r} closed={self.is_closed}>"
