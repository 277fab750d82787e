# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recruitment post API endpoints.

This module provides endpoints for travel-companion recruitment posts:
- GET /search - Filtered and sorted search (bearer token optional)
- GET /recent - The three most recent posts
- GET /{recruit_id} - Post detail
- POST / - Create a post
- PUT /{recruit_id} - Update a post (owner or admin)
- DELETE /{recruit_id} - Delete a post (owner or admin)

Example:
    GET /api/v1/recruits/search?keyword=beach&sameGender=true&sortBy=budget_asc
"""

import logging
from datetime import date

from fastapi import APIRouter, Query, status

from tripfriend.api.dependencies import CurrentMember, OptionalMember, RecruitServiceDep
from tripfriend.api.errors import ErrorResponse
from tripfriend.domains.recruit.filters import RecruitSearchCriteria, RequesterProfile
from tripfriend.domains.recruit.schemas import (
    RecruitCreateRequest,
    RecruitDetail,
    RecruitListItem,
    RecruitUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/search",
    response_model=list[RecruitListItem],
    summary="Search recruitment posts",
    description="""
    Search posts with optional filters. Every filter is optional; an
    omitted filter places no constraint.

    When a bearer token is presented, ``sameGender`` and ``sameAge``
    compare against the caller's profile. Anonymous callers, or callers
    whose gender or age range is unknown, are not constrained by them.

    Sort keys: ``latest`` (default), ``startDate_asc``, ``endDate_desc``,
    ``trip_duration``, ``budget_asc``, ``budget_desc``, ``groupsize_asc``,
    ``groupsize_desc``.
    """,
    responses={401: {"model": ErrorResponse}},
)
async def search_recruits(
    member: OptionalMember,
    recruit_service: RecruitServiceDep,
    keyword: str | None = Query(None),
    city_name: str | None = Query(None, alias="cityName"),
    is_closed: bool | None = Query(None, alias="isClosed"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    travel_style: str | None = Query(None, alias="travelStyle"),
    same_gender: bool | None = Query(None, alias="sameGender"),
    same_age: bool | None = Query(None, alias="sameAge"),
    min_budget: int | None = Query(None, alias="minBudget"),
    max_budget: int | None = Query(None, alias="maxBudget"),
    min_group_size: int | None = Query(None, alias="minGroupSize"),
    max_group_size: int | None = Query(None, alias="maxGroupSize"),
    sort_by: str | None = Query(None, alias="sortBy"),
) -> list[RecruitListItem]:
    """Search recruitment posts."""
    criteria = RecruitSearchCriteria(
        keyword=keyword,
        city_name=city_name,
        is_closed=is_closed,
        start_date=start_date,
        end_date=end_date,
        travel_style=travel_style,
        same_gender=same_gender,
        same_age=same_age,
        min_budget=min_budget,
        max_budget=max_budget,
        min_group_size=min_group_size,
        max_group_size=max_group_size,
        sort_by=sort_by,
    )
    recruits = await recruit_service.search(criteria, RequesterProfile.from_member(member))
    return [recruit_service.to_list_item(r) for r in recruits]


@router.get(
    "/recent",
    response_model=list[RecruitListItem],
    summary="Most recent recruitment posts",
)
async def list_recent_recruits(recruit_service: RecruitServiceDep) -> list[RecruitListItem]:
    """List the three most recently created posts."""
    recruits = await recruit_service.list_recent(3)
    return [recruit_service.to_list_item(r) for r in recruits]


@router.get(
    "/{recruit_id}",
    response_model=RecruitDetail,
    summary="Get recruitment post",
    responses={404: {"model": ErrorResponse}},
)
async def get_recruit(recruit_id: int, recruit_service: RecruitServiceDep) -> RecruitDetail:
    """Get a recruitment post with its body."""
    recruit = await recruit_service.get(recruit_id)
    return recruit_service.to_detail(recruit)


@router.post(
    "",
    response_model=RecruitDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create recruitment post",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_recruit(
    data: RecruitCreateRequest,
    member: CurrentMember,
    recruit_service: RecruitServiceDep,
) -> RecruitDetail:
    """Create a recruitment post owned by the authenticated member.

    Args:
        data: Post contents.
        member: Authenticated member.
        recruit_service: Recruit service.

    Returns:
        The created post.
    """
    recruit = await recruit_service.create(member, data)
    return recruit_service.to_detail(recruit)


@router.put(
    "/{recruit_id}",
    response_model=RecruitDetail,
    summary="Update recruitment post",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_recruit(
    recruit_id: int,
    data: RecruitUpdateRequest,
    member: CurrentMember,
    recruit_service: RecruitServiceDep,
) -> RecruitDetail:
    """Update a recruitment post as its owner or an admin."""
    recruit = await recruit_service.update(recruit_id, member, data)
    return recruit_service.to_detail(recruit)


@router.delete(
    "/{recruit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete recruitment post",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_recruit(
    recruit_id: int,
    member: CurrentMember,
    recruit_service: RecruitServiceDep,
) -> None:
    """Delete a recruitment post as its owner or an admin."""
    await recruit_service.delete(recruit_id, member)
