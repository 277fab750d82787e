# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recruitment post service.

This module provides the RecruitService that handles:
- Filtered, sorted search over recruitment posts
- Reading single posts and the most recent posts
- Creating posts, and updating or deleting them as owner or admin

Example:
    >>> service = RecruitService(db)
    >>> recruits = await service.search(criteria, RequesterProfile.from_member(member))
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripfriend.domains.recruit.filters import (
    RecruitSearchCriteria,
    RequesterProfile,
    build_search_statement,
)
from tripfriend.domains.recruit.schemas import (
    RecruitCreateRequest,
    RecruitDetail,
    RecruitListItem,
    RecruitUpdateRequest,
)
from tripfriend.infrastructure.database.models import Authority, Member, Place, Recruit

logger = logging.getLogger(__name__)

NO_RESTRICTION = "ANY"


class RecruitServiceError(Exception):
    """Base exception for recruit service errors."""

    code = "400-10"
    default_message = "Recruit operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class RecruitNotFoundError(RecruitServiceError):
    """Raised when a recruitment post does not exist."""

    code = "404-2"
    default_message = "Recruit not found"


class PlaceNotFoundError(RecruitServiceError):
    """Raised when a post references an unknown place."""

    code = "404-3"
    default_message = "Place not found"


class RecruitPermissionError(RecruitServiceError):
    """Raised when a member other than the owner or an admin edits a post."""

    code = "403-2"
    default_message = "Only the author or an admin may modify this recruit"


class RecruitService:
    """Service for recruitment posts.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the recruit service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def search(
        self,
        criteria: RecruitSearchCriteria,
        requester: RequesterProfile | None = None,
    ) -> list[Recruit]:
        """Search recruitment posts.

        Args:
            criteria: Optional filters and sort key.
            requester: Demographics of the searching member, None if anonymous.

        Returns:
            Matching posts in the requested order.
        """
        stmt = build_search_statement(criteria, requester)
        result = await self._db.execute(stmt)
        recruits = list(result.scalars().all())

        logger.debug("Recruit search returned %d rows", len(recruits))
        return recruits

    async def get(self, recruit_id: int) -> Recruit:
        """Get a recruitment post.

        Raises:
            RecruitNotFoundError: If the post does not exist.
        """
        stmt = select(Recruit).where(Recruit.id == recruit_id)
        result = await self._db.execute(stmt)
        recruit = result.scalar_one_or_none()
        if recruit is None:
            raise RecruitNotFoundError(f"Recruit {recruit_id} not found")
        return recruit

    async def list_recent(self, limit: int = 3) -> list[Recruit]:
        """Most recently created posts."""
        stmt = select(Recruit).order_by(Recruit.created_at.desc(), Recruit.id.desc()).limit(limit)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, owner: Member, request: RecruitCreateRequest) -> Recruit:
        """Create a recruitment post.

        Args:
            owner: The authoring member.
            request: Post contents.

        Returns:
            The created post.

        Raises:
            PlaceNotFoundError: If the place does not exist.
        """
        place = await self._get_place(request.place_id)

        recruit = Recruit(
            title=request.title,
            content=request.content,
            start_date=request.start_date,
            end_date=request.end_date,
            travel_style=request.travel_style,
            same_gender=request.same_gender,
            same_age=request.same_age,
            budget=request.budget,
            group_size=request.group_size,
            is_closed=False,
        )
        recruit.member = owner
        recruit.place = place

        self._db.add(recruit)
        await self._db.commit()
        await self._db.refresh(recruit)

        logger.info("Recruit created: %s by %s", recruit.id, owner.username)

        return recruit

    async def update(
        self,
        recruit_id: int,
        actor: Member,
        request: RecruitUpdateRequest,
    ) -> Recruit:
        """Update a recruitment post.

        Args:
            recruit_id: Post identifier.
            actor: The member making the change.
            request: Fields to change.

        Returns:
            The updated post.

        Raises:
            RecruitNotFoundError: If the post does not exist.
            RecruitPermissionError: If the actor is neither owner nor admin.
            PlaceNotFoundError: If the new place does not exist.
        """
        recruit = await self.get(recruit_id)
        self._check_can_modify(recruit, actor)

        if request.place_id is not None:
            recruit.place = await self._get_place(request.place_id)

        for field in (
            "title",
            "content",
            "is_closed",
            "start_date",
            "end_date",
            "travel_style",
            "same_gender",
            "same_age",
            "budget",
            "group_size",
        ):
            value = getattr(request, field)
            if value is not None:
                setattr(recruit, field, value)

        await self._db.commit()
        await self._db.refresh(recruit)

        logger.info("Recruit updated: %s by %s", recruit.id, actor.username)

        return recruit

    async def delete(self, recruit_id: int, actor: Member) -> None:
        """Delete a recruitment post.

        Raises:
            RecruitNotFoundError: If the post does not exist.
            RecruitPermissionError: If the actor is neither owner nor admin.
        """
        recruit = await self.get(recruit_id)
        self._check_can_modify(recruit, actor)

        await self._db.delete(recruit)
        await self._db.commit()

        logger.info("Recruit deleted: %s by %s", recruit_id, actor.username)

    def to_list_item(self, recruit: Recruit) -> RecruitListItem:
        """Convert a post with its owner and place to a list row."""
        owner = recruit.member
        return RecruitListItem(
            recruit_id=recruit.id,
            member_id=owner.id,
            nickname=owner.nickname,
            profile_image=owner.profile_image,
            place_name=recruit.place.place_name,
            city_name=recruit.place.city_name,
            title=recruit.title,
            is_closed=recruit.is_closed,
            start_date=recruit.start_date,
            end_date=recruit.end_date,
            travel_style=recruit.travel_style,
            gender_restriction=owner.gender if recruit.same_gender else NO_RESTRICTION,
            age_restriction=owner.age_range if recruit.same_age else NO_RESTRICTION,
            budget=recruit.budget,
            group_size=recruit.group_size,
            created_at=recruit.created_at,
        )

    def to_detail(self, recruit: Recruit) -> RecruitDetail:
        """Convert a post to its detail view."""
        return RecruitDetail(
            **self.to_list_item(recruit).model_dump(),
            content=recruit.content,
            updated_at=recruit.updated_at,
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_place(self, place_id: int) -> Place:
        place = await self._db.get(Place, place_id)
        if place is None:
            raise PlaceNotFoundError(f"Place {place_id} not found")
        return place

    @staticmethod
    def _check_can_modify(recruit: Recruit, actor: Member) -> None:
        if recruit.is_owned_by(actor) or actor.authority == Authority.ADMIN.value:
            return
        raise RecruitPermissionError()
