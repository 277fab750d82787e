# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for TripFriend.

Importing this package registers every model on ``Base.metadata``.
"""

from tripfriend.infrastructure.database.models.base import Base, TimestampMixin
from tripfriend.infrastructure.database.models.member import (
    AgeRange,
    Authority,
    Gender,
    Member,
    MemberTravelStyle,
)
from tripfriend.infrastructure.database.models.place import Place
from tripfriend.infrastructure.database.models.recruit import Recruit, TravelStyle

__all__ = [
    "Base",
    "TimestampMixin",
    # Member
    "Member",
    "Gender",
    "AgeRange",
    "MemberTravelStyle",
    "Authority",
    # Place
    "Place",
    # Recruit
    "Recruit",
    "TravelStyle",
]
