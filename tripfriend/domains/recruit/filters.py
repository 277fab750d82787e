# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recruitment search: criteria, predicates and ordering.

Every search criterion is optional. Each one that is present adds one
clause to a conjunction, so the order in which criteria are supplied
never changes the result. An absent criterion adds nothing.

The same-gender and same-age criteria depend on who is searching. They
are dropped entirely for anonymous requesters and for requesters whose
gender or age range is UNKNOWN.

Example:
    >>> criteria = RecruitSearchCriteria(city_name="서울", sort_by="budget_asc")
    >>> stmt = build_search_statement(criteria, requester=None)
    >>> recruits = (await db.execute(stmt)).scalars().all()
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict
from sqlalchemy import ColumnElement, Integer, Select, and_, or_, select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import contains_eager
from sqlalchemy.sql.functions import FunctionElement

from tripfriend.infrastructure.database.models import (
    AgeRange,
    Gender,
    Member,
    Place,
    Recruit,
)


class RecruitSearchCriteria(BaseModel):
    """Optional recruitment search filters.

    ``None`` means "no constraint" for every field.
    """

    model_config = ConfigDict(frozen=True)

    keyword: str | None = None
    city_name: str | None = None
    is_closed: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    travel_style: str | None = None
    same_gender: bool | None = None
    same_age: bool | None = None
    min_budget: int | None = None
    max_budget: int | None = None
    min_group_size: int | None = None
    max_group_size: int | None = None
    sort_by: str | None = None


@dataclass(frozen=True)
class RequesterProfile:
    """Demographics of the member running a search."""

    gender: Gender | None = None
    age_range: AgeRange | None = None

    @classmethod
    def from_member(cls, member: Member | None) -> "RequesterProfile | None":
        """Build a profile for a resolved member, or None when anonymous."""
        if member is None:
            return None
        return cls(gender=member.gender, age_range=member.age_range)

    @property
    def known_gender(self) -> Gender | None:
        if self.gender is None or self.gender == Gender.UNKNOWN:
            return None
        return self.gender

    @property
    def known_age_range(self) -> AgeRange | None:
        if self.age_range is None or self.age_range == AgeRange.UNKNOWN:
            return None
        return self.age_range


class trip_days(FunctionElement):
    """Whole days between two date columns (end minus start)."""

    type = Integer()
    inherit_cache = True


@compiles(trip_days)
def _trip_days_default(element, compiler, **kw):
    start, end = list(element.clauses)
    return "(%s - %s)" % (compiler.process(end, **kw), compiler.process(start, **kw))


@compiles(trip_days, "sqlite")
def _trip_days_sqlite(element, compiler, **kw):
    start, end = list(element.clauses)
    return "(julianday(%s) - julianday(%s))" % (
        compiler.process(end, **kw),
        compiler.process(start, **kw),
    )


@compiles(trip_days, "mysql")
def _trip_days_mysql(element, compiler, **kw):
    start, end = list(element.clauses)
    return "DATEDIFF(%s, %s)" % (compiler.process(end, **kw), compiler.process(start, **kw))


class SortOption(Enum):
    """Supported orderings as (key, field, direction)."""

    LATEST = ("latest", "created_at", "desc")
    STARTDATE_ASC = ("startdate_asc", "start_date", "asc")
    ENDDATE_DESC = ("enddate_desc", "end_date", "desc")
    TRIP_DURATION = ("trip_duration", "trip_duration", "desc")
    BUDGET_ASC = ("budget_asc", "budget", "asc")
    BUDGET_DESC = ("budget_desc", "budget", "desc")
    GROUPSIZE_ASC = ("groupsize_asc", "group_size", "asc")
    GROUPSIZE_DESC = ("groupsize_desc", "group_size", "desc")

    def __init__(self, key: str, field: str, direction: str) -> None:
        self.key = key
        self.field = field
        self.direction = direction

    @classmethod
    def parse(cls, value: str | None) -> "SortOption":
        """Look up a sort key case-insensitively, falling back to LATEST."""
        if value:
            wanted = value.strip().lower()
            for option in cls:
                if option.key == wanted:
                    return option
        return cls.LATEST

    def order_by(self) -> list[ColumnElement]:
        """Order clauses for this option, newest id last as a tie-breaker."""
        if self.field == "trip_duration":
            column = trip_days(Recruit.start_date, Recruit.end_date)
        else:
            column = getattr(Recruit, self.field)

        primary = column.asc() if self.direction == "asc" else column.desc()
        return [primary, Recruit.id.desc()]


def build_conditions(
    criteria: RecruitSearchCriteria,
    requester: RequesterProfile | None,
) -> list[ColumnElement[bool]]:
    """Build one clause per present criterion.

    Args:
        criteria: Search criteria.
        requester: Demographics of the searching member, None if anonymous.

    Returns:
        Clauses to be combined with AND. Empty when nothing constrains
        the search.
    """
    conditions: list[ColumnElement[bool]] = []

    if criteria.keyword is not None:
        conditions.append(
            or_(
                Recruit.title.icontains(criteria.keyword, autoescape=True),
                Recruit.content.icontains(criteria.keyword, autoescape=True),
            )
        )

    if criteria.city_name is not None:
        conditions.append(Place.city_name == criteria.city_name)

    if criteria.is_closed is not None:
        conditions.append(Recruit.is_closed.is_(criteria.is_closed))

    if criteria.start_date is not None:
        conditions.append(Recruit.start_date >= criteria.start_date)

    if criteria.end_date is not None:
        conditions.append(Recruit.end_date <= criteria.end_date)

    if criteria.travel_style is not None:
        conditions.append(Recruit.travel_style == criteria.travel_style)

    if criteria.same_gender and requester is not None and requester.known_gender is not None:
        conditions.append(
            or_(
                Recruit.same_gender.is_(False),
                Member.gender == requester.known_gender,
            )
        )

    if criteria.same_age and requester is not None and requester.known_age_range is not None:
        conditions.append(
            or_(
                Recruit.same_age.is_(False),
                Member.age_range == requester.known_age_range,
            )
        )

    if criteria.min_budget is not None:
        conditions.append(Recruit.budget >= criteria.min_budget)

    if criteria.max_budget is not None:
        conditions.append(Recruit.budget <= criteria.max_budget)

    if criteria.min_group_size is not None:
        conditions.append(Recruit.group_size >= criteria.min_group_size)

    if criteria.max_group_size is not None:
        conditions.append(Recruit.group_size <= criteria.max_group_size)

    return conditions


def build_search_statement(
    criteria: RecruitSearchCriteria,
    requester: RequesterProfile | None,
) -> Select[tuple[Recruit]]:
    """Build the full search query.

    Recruits are joined to their owner and place, which are also loaded
    onto the results.

    Args:
        criteria: Search criteria.
        requester: Demographics of the searching member, None if anonymous.

    Returns:
        A select statement ready to execute.
    """
    stmt = (
        select(Recruit)
        .join(Recruit.member)
        .join(Recruit.place)
        .options(contains_eager(Recruit.member), contains_eager(Recruit.place))
    )

    conditions = build_conditions(criteria, requester)
    if conditions:
        stmt = stmt.where(and_(*conditions))

    return stmt.order_by(*SortOption.parse(criteria.sort_by).order_by())
