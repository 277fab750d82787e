# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the authentication service.

Tests login, logout, refresh and current-member resolution against an
in-memory credential store and a mocked database session.
"""

from datetime import timedelta

import pytest

from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.exceptions import (
    AccountPermanentlyDeletedError,
    InvalidCredentialsError,
    MemberNotFoundError,
    NoStoredSessionError,
    RefreshTokenExpiredError,
    SessionMismatchError,
    TokenExpiredError,
    TokenMalformedError,
    TokenRevokedError,
)
from tripfriend.domains.auth.jwt import TokenCodec
from tripfriend.domains.auth.service import AuthService, strip_bearer_prefix
from tripfriend.utils.datetime import utc_now


@pytest.fixture
def make_service(codec, store, password_hasher, restore_window, db_factory):
    """Factory building an AuthService whose database returns ``member``."""

    def _make(member=None) -> AuthService:
        return AuthService(
            db=db_factory(member),
            token_codec=codec,
            credential_store=store,
            password_hasher=password_hasher,
            restore_window=restore_window,
            rotation_threshold=0.3,
        )

    return _make


class TestStripBearerPrefix:
    """Tests for strip_bearer_prefix."""

    def test_strips_prefix(self) -> None:
        assert strip_bearer_prefix("Bearer abc.def") == "abc.def"

    def test_leaves_bare_token(self) -> None:
        assert strip_bearer_prefix("abc.def") == "abc.def"

    def test_none_and_empty(self) -> None:
        assert strip_bearer_prefix(None) is None
        assert strip_bearer_prefix("Bearer ") is None


class TestLogin:
    """Tests for AuthService.login."""

    async def test_login_success_records_tokens(
        self, make_service, member_factory, secret_hash, store: CredentialStore, codec: TokenCodec
    ) -> None:
        """Test that a successful login records both tokens as current."""
        member = member_factory(password_hash=secret_hash, verified=True)
        service = make_service(member)

        result = await service.login("traveler01", "secret123")

        assert result.recovery_mode is False
        assert result.role == "USER"
        assert await store.get_access_token("traveler01") == result.access_token
        assert await store.get_refresh_token("traveler01") == result.refresh_token
        assert codec.extract_verified(result.access_token) is True

    async def test_login_records_ttls(
        self, make_service, member_factory, secret_hash, backend
    ) -> None:
        service = make_service(member_factory(password_hash=secret_hash))

        await service.login("traveler01", "secret123")

        assert backend.ttls["access:traveler01"] == 30 * 60
        assert backend.ttls["refresh:traveler01"] == 7 * 86400

    async def test_login_wrong_password(self, make_service, member_factory, secret_hash) -> None:
        service = make_service(member_factory(password_hash=secret_hash))

        with pytest.raises(InvalidCredentialsError):
            await service.login("traveler01", "wrong")

    async def test_login_unknown_username(self, make_service) -> None:
        """Test that an unknown username is indistinguishable from a bad password."""
        service = make_service(None)

        with pytest.raises(InvalidCredentialsError):
            await service.login("ghost", "secret123")

    async def test_login_soft_deleted_enters_recovery_mode(
        self, make_service, member_factory, secret_hash, codec: TokenCodec, backend
    ) -> None:
        """Test that a restorable account gets recovery-mode tokens."""
        member = member_factory(password_hash=secret_hash)
        member.mark_deleted(utc_now() - timedelta(days=3))
        service = make_service(member)

        result = await service.login("traveler01", "secret123")

        assert result.recovery_mode is True
        assert codec.extract_recovery_flag(result.access_token) is True
        assert codec.extract_recovery_flag(result.refresh_token) is True
        assert backend.ttls["access:traveler01"] == 10 * 60
        assert backend.ttls["refresh:traveler01"] == 86400

    async def test_login_past_restore_window(
        self, make_service, member_factory, secret_hash
    ) -> None:
        member = member_factory(password_hash=secret_hash)
        member.mark_deleted(utc_now() - timedelta(days=31))
        service = make_service(member)

        with pytest.raises(AccountPermanentlyDeletedError):
            await service.login("traveler01", "secret123")

    async def test_second_login_replaces_first_session(
        self, make_service, member_factory, secret_hash
    ) -> None:
        """Test that only the most recent login's token is accepted."""
        member = member_factory(password_hash=secret_hash)
        service = make_service(member)

        first = await service.login("traveler01", "secret123")
        second = await service.login("traveler01", "secret123")

        with pytest.raises(SessionMismatchError):
            await service.resolve_current_member(first.access_token)
        assert await service.resolve_current_member(second.access_token) is member


class TestLoginMember:
    """Tests for AuthService.login_member."""

    async def test_active_member_gets_normal_session(
        self, make_service, member_factory, store: CredentialStore
    ) -> None:
        member = member_factory(provider="kakao", provider_id="12345", verified=True)
        service = make_service(member)

        result = await service.login_member(member)

        assert result.recovery_mode is False
        assert await store.get_access_token("traveler01") == result.access_token
        assert await service.resolve_current_member(result.access_token) is member

    async def test_restorable_member_gets_recovery_session(
        self, make_service, member_factory, codec: TokenCodec
    ) -> None:
        member = member_factory(provider="kakao", provider_id="12345")
        member.mark_deleted(utc_now() - timedelta(days=2))
        service = make_service(member)

        result = await service.login_member(member)

        assert result.recovery_mode is True
        assert codec.extract_recovery_flag(result.access_token) is True

    async def test_purged_member_is_refused(
        self, make_service, member_factory, backend
    ) -> None:
        member = member_factory(provider="kakao", provider_id="12345")
        member.mark_deleted(utc_now() - timedelta(days=31))
        service = make_service(member)

        with pytest.raises(AccountPermanentlyDeletedError):
            await service.login_member(member)
        assert "access:traveler01" not in backend.data


class TestLogout:
    """Tests for AuthService.logout."""

    async def test_logout_blacklists_and_drops_session(
        self, make_service, member_factory, secret_hash, store: CredentialStore, backend
    ) -> None:
        service = make_service(member_factory(password_hash=secret_hash))
        result = await service.login("traveler01", "secret123")

        await service.logout(f"Bearer {result.access_token}")

        assert await store.is_blacklisted(result.access_token) is True
        assert await store.get_refresh_token("traveler01") is None
        assert await store.get_access_token("traveler01") is None
        assert 1 <= backend.ttls[f"blacklist:{result.access_token}"] <= 30 * 60

    async def test_logged_out_token_is_revoked(
        self, make_service, member_factory, secret_hash
    ) -> None:
        """Test that a logged out token fails resolution as revoked."""
        service = make_service(member_factory(password_hash=secret_hash))
        result = await service.login("traveler01", "secret123")

        await service.logout(result.access_token)

        with pytest.raises(TokenRevokedError):
            await service.resolve_current_member(result.access_token)

    async def test_logout_without_token_is_noop(self, make_service, backend) -> None:
        service = make_service(None)

        await service.logout(None)

        assert backend.data == {}

    async def test_logout_twice_is_noop(
        self, make_service, member_factory, secret_hash, backend
    ) -> None:
        service = make_service(member_factory(password_hash=secret_hash))
        result = await service.login("traveler01", "secret123")
        await service.logout(result.access_token)
        snapshot = dict(backend.data)

        await service.logout(result.access_token)

        assert backend.data == snapshot

    async def test_logout_malformed_token(self, make_service) -> None:
        service = make_service(None)

        with pytest.raises(TokenMalformedError):
            await service.logout("not-a-token")

    async def test_logout_of_stale_token_keeps_newer_access_token(
        self, make_service, member_factory, secret_hash, store: CredentialStore
    ) -> None:
        """Test that logging out a replaced token does not drop the newer access token."""
        service = make_service(member_factory(password_hash=secret_hash))
        first = await service.login("traveler01", "secret123")
        second = await service.login("traveler01", "secret123")

        await service.logout(first.access_token)

        assert await store.get_access_token("traveler01") == second.access_token


class TestRefresh:
    """Tests for AuthService.refresh."""

    async def test_refresh_issues_new_access_token(
        self, make_service, member_factory, secret_hash, store: CredentialStore
    ) -> None:
        """Test that a fresh refresh token is kept and a new access token recorded."""
        service = make_service(member_factory(password_hash=secret_hash))
        login = await service.login("traveler01", "secret123")

        result = await service.refresh(login.access_token)

        assert result.rotated is False
        assert result.recovery_mode is False
        assert result.refresh_token == login.refresh_token
        assert result.access_token != login.access_token
        assert await store.get_access_token("traveler01") == result.access_token

    async def test_refresh_accepts_expired_access_token(
        self, make_service, store: CredentialStore, codec: TokenCodec, expired_codec: TokenCodec
    ) -> None:
        service = make_service(None)
        expired_access = expired_codec.issue_access_token("traveler01", "USER", True)
        await store.save_refresh_token(
            "traveler01", codec.issue_refresh_token("traveler01", "USER", True), 60
        )

        result = await service.refresh(expired_access)

        assert codec.is_expired(result.access_token) is False
        assert codec.extract_verified(result.access_token) is True

    async def test_refresh_rotates_near_expiry(
        self, make_service, store: CredentialStore, codec: TokenCodec, jwt_settings_factory
    ) -> None:
        """Test that a refresh token below the rotation threshold is replaced."""
        service = make_service(None)
        short_codec = TokenCodec(jwt_settings_factory(refresh_token_expire_days=1))
        old_refresh = short_codec.issue_refresh_token("traveler01", "USER", False)
        await store.save_refresh_token("traveler01", old_refresh, 86400)
        access = codec.issue_access_token("traveler01", "USER", False)

        result = await service.refresh(access)

        assert result.rotated is True
        assert result.refresh_token != old_refresh
        assert await store.get_refresh_token("traveler01") == result.refresh_token
        assert codec.remaining_seconds(result.refresh_token) > 6 * 86400

    async def test_refresh_without_stored_session(
        self, make_service, codec: TokenCodec
    ) -> None:
        service = make_service(None)
        access = codec.issue_access_token("traveler01", "USER", True)

        with pytest.raises(NoStoredSessionError):
            await service.refresh(access)

    async def test_refresh_with_expired_refresh_token(
        self, make_service, store: CredentialStore, codec: TokenCodec, expired_codec: TokenCodec
    ) -> None:
        service = make_service(None)
        await store.save_refresh_token(
            "traveler01", expired_codec.issue_refresh_token("traveler01", "USER", True), 60
        )
        access = codec.issue_access_token("traveler01", "USER", True)

        with pytest.raises(RefreshTokenExpiredError):
            await service.refresh(access)

    async def test_refresh_rejects_refresh_token_as_input(
        self, make_service, codec: TokenCodec
    ) -> None:
        service = make_service(None)
        refresh = codec.issue_refresh_token("traveler01", "USER", True)

        with pytest.raises(TokenMalformedError):
            await service.refresh(refresh)

    async def test_refresh_without_token(self, make_service) -> None:
        service = make_service(None)

        with pytest.raises(TokenMalformedError):
            await service.refresh(None)

    async def test_refresh_keeps_recovery_mode(
        self, make_service, store: CredentialStore, codec: TokenCodec, backend
    ) -> None:
        service = make_service(None)
        await store.save_refresh_token(
            "traveler01",
            codec.issue_refresh_token("traveler01", "USER", False, recovering=True),
            86400,
        )
        access = codec.issue_access_token("traveler01", "USER", False, recovering=True)

        result = await service.refresh(access)

        assert codec.extract_recovery_flag(result.access_token) is True
        assert result.recovery_mode is True
        assert backend.ttls["access:traveler01"] == 10 * 60


class TestResolveCurrentMember:
    """Tests for AuthService.resolve_current_member."""

    async def test_resolves_member(
        self, make_service, member_factory, secret_hash
    ) -> None:
        member = member_factory(password_hash=secret_hash)
        service = make_service(member)
        login = await service.login("traveler01", "secret123")

        assert await service.resolve_current_member(f"Bearer {login.access_token}") is member

    async def test_missing_token(self, make_service) -> None:
        service = make_service(None)

        with pytest.raises(TokenMalformedError):
            await service.resolve_current_member(None)

    async def test_revoked_checked_before_session_match(
        self, make_service, store: CredentialStore, codec: TokenCodec
    ) -> None:
        """Test that a blacklisted token reports revoked even if not current."""
        service = make_service(None)
        token = codec.issue_access_token("traveler01", "USER", True)
        await store.add_to_blacklist(token, 60)

        with pytest.raises(TokenRevokedError):
            await service.resolve_current_member(token)

    async def test_mismatch_checked_before_expiry(
        self, make_service, expired_codec: TokenCodec
    ) -> None:
        """Test that an expired, non-current token reports a session mismatch."""
        service = make_service(None)
        token = expired_codec.issue_access_token("traveler01", "USER", True)

        with pytest.raises(SessionMismatchError):
            await service.resolve_current_member(token)

    async def test_expired_current_token(
        self, make_service, store: CredentialStore, expired_codec: TokenCodec
    ) -> None:
        service = make_service(None)
        token = expired_codec.issue_access_token("traveler01", "USER", True)
        await store.save_access_token("traveler01", token, 60)

        with pytest.raises(TokenExpiredError):
            await service.resolve_current_member(token)

    async def test_member_no_longer_exists(
        self, make_service, store: CredentialStore, codec: TokenCodec
    ) -> None:
        service = make_service(None)
        token = codec.issue_access_token("traveler01", "USER", True)
        await store.save_access_token("traveler01", token, 60)

        with pytest.raises(MemberNotFoundError):
            await service.resolve_current_member(token)

    async def test_garbage_token(self, make_service) -> None:
        service = make_service(None)

        with pytest.raises(TokenMalformedError):
            await service.resolve_current_member("garbage")
