# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recruitment post request and response schemas."""

from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from tripfriend.infrastructure.database.models import AgeRange, Gender, TravelStyle


class RecruitCreateRequest(BaseModel):
    """New recruitment post."""

    place_id: int
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    travel_style: TravelStyle
    same_gender: bool = False
    same_age: bool = False
    budget: int = Field(0, ge=0)
    group_size: int = Field(2, ge=1)

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        """Reject trips that end before they start."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecruitUpdateRequest(BaseModel):
    """Recruitment post update. Only fields that are set are applied."""

    place_id: int | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    is_closed: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    travel_style: TravelStyle | None = None
    same_gender: bool | None = None
    same_age: bool | None = None
    budget: int | None = Field(None, ge=0)
    group_size: int | None = Field(None, ge=1)


class RecruitListItem(BaseModel):
    """Recruitment post row in search results.

    ``gender_restriction`` and ``age_restriction`` name the owner's gender
    or age range when the post is restricted to it, otherwise "ANY".
    """

    recruit_id: int
    member_id: int
    nickname: str
    profile_image: str | None
    place_name: str
    city_name: str
    title: str
    is_closed: bool
    start_date: date
    end_date: date
    travel_style: TravelStyle
    gender_restriction: Gender | str
    age_restriction: AgeRange | str
    budget: int
    group_size: int
    created_at: datetime


class RecruitDetail(RecruitListItem):
    """Recruitment post with its body."""

    content: str
    updated_at: datetime
