# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the recruit service."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from tripfriend.domains.recruit.schemas import RecruitCreateRequest, RecruitUpdateRequest
from tripfriend.domains.recruit.service import (
    NO_RESTRICTION,
    PlaceNotFoundError,
    RecruitNotFoundError,
    RecruitPermissionError,
    RecruitService,
)
from tripfriend.infrastructure.database.models import (
    AgeRange,
    Gender,
    Place,
    Recruit,
    TravelStyle,
)
from tripfriend.utils.datetime import utc_now


@pytest.fixture
def owner(member_factory):
    return member_factory(
        username="alice",
        id=1,
        gender=Gender.FEMALE,
        age_range=AgeRange.TWENTIES,
    )


@pytest.fixture
def place() -> Place:
    return Place(id=7, city_name="Seoul", place_name="Gyeongbokgung")


@pytest.fixture
def recruit(owner, place) -> Recruit:
    recruit = Recruit(
        id=10,
        member_id=owner.id,
        place_id=place.id,
        title="Seoul food tour",
        content="Eat kimchi",
        is_closed=False,
        start_date=date(2025, 5, 1),
        end_date=date(2025, 5, 3),
        travel_style=TravelStyle.GOURMET,
        same_gender=True,
        same_age=False,
        budget=300,
        group_size=2,
        created_at=utc_now(),
        updated_at=utc_now(),
    )
    recruit.member = owner
    recruit.place = place
    return recruit


def _db(found=None, place=None) -> AsyncMock:
    """Async session resolving lookups to ``found`` and places to ``place``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = found
    result.scalars.return_value.all.return_value = [found] if found is not None else []
    db = AsyncMock()
    db.execute.return_value = result
    db.get.return_value = place
    db.add = MagicMock()
    return db


class TestRead:
    """Tests for reading posts."""

    async def test_get_found(self, recruit) -> None:
        service = RecruitService(_db(found=recruit))

        assert await service.get(10) is recruit

    async def test_get_missing(self) -> None:
        service = RecruitService(_db())

        with pytest.raises(RecruitNotFoundError):
            await service.get(99)

    async def test_search_returns_rows(self, recruit) -> None:
        from tripfriend.domains.recruit.filters import RecruitSearchCriteria

        service = RecruitService(_db(found=recruit))

        assert await service.search(RecruitSearchCriteria()) == [recruit]

    async def test_list_recent(self, recruit) -> None:
        db = _db(found=recruit)
        service = RecruitService(db)

        assert await service.list_recent(limit=3) == [recruit]
        stmt = db.execute.await_args.args[0]
        assert "LIMIT" in str(stmt)


class TestCreate:
    """Tests for RecruitService.create."""

    async def test_create(self, owner, place) -> None:
        db = _db(place=place)
        service = RecruitService(db)
        request = RecruitCreateRequest(
            place_id=7,
            title="Hike",
            content="Up the mountain",
            start_date=date(2025, 4, 10),
            end_date=date(2025, 4, 14),
            travel_style=TravelStyle.ADVENTURE,
        )

        recruit = await service.create(owner, request)

        db.add.assert_called_once_with(recruit)
        db.commit.assert_awaited_once()
        assert recruit.member is owner
        assert recruit.place is place
        assert recruit.is_closed is False

    async def test_create_unknown_place(self, owner) -> None:
        db = _db(place=None)
        service = RecruitService(db)
        request = RecruitCreateRequest(
            place_id=404,
            title="Hike",
            content="Up the mountain",
            start_date=date(2025, 4, 10),
            end_date=date(2025, 4, 14),
            travel_style=TravelStyle.ADVENTURE,
        )

        with pytest.raises(PlaceNotFoundError):
            await service.create(owner, request)
        db.add.assert_not_called()

    def test_create_request_rejects_reversed_dates(self) -> None:
        with pytest.raises(ValueError):
            RecruitCreateRequest(
                place_id=1,
                title="Hike",
                content="x",
                start_date=date(2025, 4, 14),
                end_date=date(2025, 4, 10),
                travel_style=TravelStyle.ADVENTURE,
            )


class TestModify:
    """Tests for update and delete permissions."""

    async def test_owner_can_update(self, recruit, owner) -> None:
        service = RecruitService(_db(found=recruit))

        updated = await service.update(10, owner, RecruitUpdateRequest(is_closed=True, budget=500))

        assert updated.is_closed is True
        assert updated.budget == 500
        assert updated.title == "Seoul food tour"

    async def test_admin_can_update(self, recruit, member_factory) -> None:
        admin = member_factory(username="admin", id=2, authority="ADMIN")
        service = RecruitService(_db(found=recruit))

        await service.update(10, admin, RecruitUpdateRequest(title="Edited"))

        assert recruit.title == "Edited"

    async def test_other_member_cannot_update(self, recruit, member_factory) -> None:
        other = member_factory(username="mallory", id=3)
        service = RecruitService(_db(found=recruit))

        with pytest.raises(RecruitPermissionError):
            await service.update(10, other, RecruitUpdateRequest(title="Hacked"))
        assert recruit.title == "Seoul food tour"

    async def test_owner_can_delete(self, recruit, owner) -> None:
        db = _db(found=recruit)
        service = RecruitService(db)

        await service.delete(10, owner)

        db.delete.assert_awaited_once_with(recruit)
        db.commit.assert_awaited_once()

    async def test_other_member_cannot_delete(self, recruit, member_factory) -> None:
        db = _db(found=recruit)
        service = RecruitService(db)

        with pytest.raises(RecruitPermissionError):
            await service.delete(10, member_factory(username="mallory", id=3))
        db.delete.assert_not_awaited()


class TestConversion:
    """Tests for response conversion."""

    def test_list_item_restrictions(self, recruit) -> None:
        """Test that restricted fields show the owner's value, others show ANY."""
        item = RecruitService(_db()).to_list_item(recruit)

        assert item.gender_restriction == Gender.FEMALE
        assert item.age_restriction == NO_RESTRICTION
        assert item.city_name == "Seoul"
        assert item.nickname == "nick_alice"

    def test_detail_includes_content(self, recruit) -> None:
        detail = RecruitService(_db()).to_detail(recruit)

        assert detail.content == "Eat kimchi"
        assert detail.recruit_id == 10
