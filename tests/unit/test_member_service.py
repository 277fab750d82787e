# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the member service.

Tests sign-up, profile updates, soft delete, restore, verification and
purge against a mocked database session.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.exceptions import RestoreWindowExpiredError
from tripfriend.domains.auth.service import AuthService
from tripfriend.domains.member.schemas import MemberJoinRequest, MemberUpdateRequest
from tripfriend.domains.member.service import (
    EmailMismatchError,
    MemberAlreadyExistsError,
    MemberService,
    NotDeletedMemberError,
)
from tripfriend.infrastructure.database.models import Gender, Member
from tripfriend.utils.datetime import utc_now


def _db_with_first(existing: Member | None) -> AsyncMock:
    """Async session whose execute().scalars().first() resolves to ``existing``."""
    result = MagicMock()
    result.scalars.return_value.first.return_value = existing
    result.scalar_one_or_none.return_value = existing
    db = AsyncMock()
    db.execute.return_value = result
    db.add = MagicMock()
    return db


@pytest.fixture
def make_service(codec, store, password_hasher, restore_window):
    """Factory building a MemberService over the given session."""

    def _make(db) -> MemberService:
        auth_service = AuthService(
            db=db,
            token_codec=codec,
            credential_store=store,
            password_hasher=password_hasher,
            restore_window=restore_window,
        )
        return MemberService(
            db=db,
            auth_service=auth_service,
            credential_store=store,
            password_hasher=password_hasher,
            restore_window=restore_window,
        )

    return _make


@pytest.fixture
def join_request() -> MemberJoinRequest:
    return MemberJoinRequest(
        username="traveler01",
        email="traveler01@example.com",
        password="password123",
        nickname="wanderer",
        gender=Gender.FEMALE,
    )


class TestJoin:
    """Tests for MemberService.join."""

    async def test_join_creates_member_with_hashed_password(
        self, make_service, join_request, password_hasher
    ) -> None:
        db = _db_with_first(None)
        service = make_service(db)

        member = await service.join(join_request)

        db.add.assert_called_once_with(member)
        db.commit.assert_awaited_once()
        assert member.username == "traveler01"
        assert member.gender == Gender.FEMALE
        assert member.authority == "USER"
        assert member.verified is False
        assert member.deleted is False
        assert member.password != "password123"
        assert password_hasher.verify("password123", member.password) is True

    async def test_join_duplicate_username(
        self, make_service, join_request, member_factory
    ) -> None:
        db = _db_with_first(member_factory(username="traveler01"))
        service = make_service(db)

        with pytest.raises(MemberAlreadyExistsError, match="Username"):
            await service.join(join_request)
        db.add.assert_not_called()

    async def test_join_duplicate_email(
        self, make_service, join_request, member_factory
    ) -> None:
        existing = member_factory(username="someone", email="traveler01@example.com")
        service = make_service(_db_with_first(existing))

        with pytest.raises(MemberAlreadyExistsError, match="Email"):
            await service.join(join_request)

    async def test_join_duplicate_nickname(
        self, make_service, join_request, member_factory
    ) -> None:
        existing = member_factory(username="someone", nickname="wanderer")
        service = make_service(_db_with_first(existing))

        with pytest.raises(MemberAlreadyExistsError, match="Nickname"):
            await service.join(join_request)

    async def test_join_race_on_unique_column(self, make_service, join_request) -> None:
        """Test that a row committed between the lookup and the insert is a conflict."""
        db = _db_with_first(None)
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        service = make_service(db)

        with pytest.raises(MemberAlreadyExistsError):
            await service.join(join_request)
        db.rollback.assert_awaited_once()
        db.refresh.assert_not_awaited()

    def test_join_request_rejects_password_over_bcrypt_limit(self) -> None:
        with pytest.raises(ValidationError):
            MemberJoinRequest(
                username="traveler01",
                email="traveler01@example.com",
                password="\u00e9" * 40,
                nickname="wanderer",
            )


class TestSocialMember:
    """Tests for MemberService.find_or_create_social_member."""

    async def test_first_login_creates_verified_member(
        self, make_service, password_hasher
    ) -> None:
        db = _db_with_first(None)
        service = make_service(db)

        member = await service.find_or_create_social_member("kakao", "12345", "k@example.com")

        db.add.assert_called_once_with(member)
        db.commit.assert_awaited_once()
        assert member.username == "kakao_12345"
        assert member.nickname == "kakao_12345"
        assert member.email == "k@example.com"
        assert member.provider == "kakao"
        assert member.provider_id == "12345"
        assert member.verified is True
        assert member.gender == Gender.UNKNOWN
        assert member.password.startswith("$2")
        assert password_hasher.verify("kakao_12345", member.password) is False

    async def test_missing_email_gets_placeholder(self, make_service) -> None:
        service = make_service(_db_with_first(None))

        member = await service.find_or_create_social_member("naver", "abc", None)

        assert member.email == "naver_abc@noemail.com"

    async def test_returning_member_is_reused(self, make_service, member_factory) -> None:
        existing = member_factory(username="kakao_12345", provider="kakao", provider_id="12345")
        db = _db_with_first(existing)
        service = make_service(db)

        member = await service.find_or_create_social_member("kakao", "12345", "k@example.com")

        assert member is existing
        db.add.assert_not_called()
        db.commit.assert_not_awaited()

    async def test_email_owned_by_other_member(self, make_service, member_factory) -> None:
        not_linked = MagicMock()
        not_linked.scalar_one_or_none.return_value = None
        email_owner = MagicMock()
        email_owner.scalar_one_or_none.return_value = member_factory(email="k@example.com")
        db = _db_with_first(None)
        db.execute.side_effect = [not_linked, email_owner]
        service = make_service(db)

        with pytest.raises(MemberAlreadyExistsError, match="Email"):
            await service.find_or_create_social_member("kakao", "12345", "k@example.com")
        db.add.assert_not_called()


class TestUpdateProfile:
    """Tests for MemberService.update_profile."""

    async def test_update_applies_set_fields_only(self, make_service, member_factory) -> None:
        member = member_factory(about_me="old")
        db = _db_with_first(None)
        service = make_service(db)

        await service.update_profile(member, MemberUpdateRequest(gender=Gender.MALE))

        assert member.gender == Gender.MALE
        assert member.about_me == "old"
        db.commit.assert_awaited_once()

    async def test_update_nickname_taken(self, make_service, member_factory) -> None:
        member = member_factory()
        db = AsyncMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = 99
        db.execute.return_value = result
        service = make_service(db)

        with pytest.raises(MemberAlreadyExistsError):
            await service.update_profile(member, MemberUpdateRequest(nickname="taken"))
        assert member.nickname == "nick_traveler01"

    async def test_update_same_nickname_skips_check(self, make_service, member_factory) -> None:
        member = member_factory()
        db = _db_with_first(None)
        service = make_service(db)

        await service.update_profile(member, MemberUpdateRequest(nickname="nick_traveler01"))

        db.execute.assert_not_awaited()


class TestSoftDelete:
    """Tests for MemberService.soft_delete."""

    async def test_soft_delete_sets_both_fields_and_ends_session(
        self, make_service, member_factory, codec, store: CredentialStore
    ) -> None:
        member = member_factory()
        token = codec.issue_access_token("traveler01", "USER", False)
        await store.save_access_token("traveler01", token, 60)
        await store.save_refresh_token("traveler01", "refresh", 60)
        db = _db_with_first(member)
        service = make_service(db)

        await service.soft_delete(member, token)

        assert member.deleted is True
        assert member.deleted_at is not None
        assert await store.is_blacklisted(token) is True
        assert await store.get_access_token("traveler01") is None
        assert await store.get_refresh_token("traveler01") is None
        db.commit.assert_awaited()


class TestRestore:
    """Tests for MemberService.restore."""

    async def test_restore_inside_window(
        self, make_service, member_factory, store: CredentialStore
    ) -> None:
        member = member_factory()
        member.mark_deleted(utc_now() - timedelta(days=29))
        await store.save_access_token("traveler01", "recovery-token", 60)
        service = make_service(_db_with_first(member))

        restored = await service.restore(member)

        assert restored.deleted is False
        assert restored.deleted_at is None
        assert await store.get_access_token("traveler01") is None

    async def test_restore_after_window(self, make_service, member_factory) -> None:
        member = member_factory()
        member.mark_deleted(utc_now() - timedelta(days=31))
        service = make_service(_db_with_first(member))

        with pytest.raises(RestoreWindowExpiredError):
            await service.restore(member)
        assert member.deleted is True

    async def test_restore_not_deleted(self, make_service, member_factory) -> None:
        service = make_service(_db_with_first(None))

        with pytest.raises(NotDeletedMemberError):
            await service.restore(member_factory())

    async def test_restore_uses_reference_time(self, make_service, member_factory) -> None:
        """Test the window boundary against an explicit reference time."""
        member = member_factory()
        deleted_at = utc_now() - timedelta(days=100)
        member.mark_deleted(deleted_at)
        service = make_service(_db_with_first(member))

        await service.restore(member, now=deleted_at + timedelta(days=29, hours=23))

        assert member.deleted is False


class TestMarkVerified:
    """Tests for MemberService.mark_verified."""

    async def test_mark_verified(self, make_service, member_factory) -> None:
        member = member_factory()
        service = make_service(_db_with_first(member))

        await service.mark_verified(member, "Traveler01@Example.com")

        assert member.verified is True

    async def test_mark_verified_other_address(self, make_service, member_factory) -> None:
        member = member_factory()
        service = make_service(_db_with_first(member))

        with pytest.raises(EmailMismatchError):
            await service.mark_verified(member, "other@example.com")
        assert member.verified is False


class TestPurge:
    """Tests for MemberService.purge_expired_members."""

    async def test_purge_returns_rowcount(self, make_service) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.rowcount = 3
        db.execute.return_value = result
        service = make_service(db)

        purged = await service.purge_expired_members()

        assert purged == 3
        db.execute.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_purge_statement_uses_cutoff(self, make_service) -> None:
        db = AsyncMock()
        db.execute.return_value = MagicMock(rowcount=0)
        service = make_service(db)
        now = utc_now()

        await service.purge_expired_members(now=now)

        stmt = db.execute.await_args.args[0]
        compiled = stmt.compile()
        assert "DELETE FROM members" in str(compiled)
        assert now - timedelta(days=30) in compiled.params.values()
