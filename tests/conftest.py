# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import timedelta
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.jwt import TokenCodec
from tripfriend.domains.auth.password import PasswordHasher
from tripfriend.infrastructure.database.models import (
    AgeRange,
    Authority,
    Gender,
    Member,
    MemberTravelStyle,
)
from tripfriend.utils.datetime import utc_now

TEST_SECRET = "test-secret-key-for-jwt-testing-only"


# =============================================================================
# Fakes
# =============================================================================


class FakeKeyValueBackend:
    """In-memory stand-in for the Redis client.

    Keys never expire on their own; the requested TTLs are recorded in
    ``ttls`` so tests can assert on them.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        self.data[key] = value
        self.ttls[key] = expire_seconds

    async def delete(self, key: str) -> bool:
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self.data


def make_jwt_settings(**overrides: Any) -> MagicMock:
    """Build mock JWT settings with test defaults."""
    settings = MagicMock()
    settings.secret_key = SecretStr(TEST_SECRET)
    settings.algorithm = "HS512"
    settings.access_token_expire_minutes = 30
    settings.refresh_token_expire_days = 7
    settings.recovery_access_token_expire_minutes = 10
    settings.recovery_refresh_token_expire_days = 1
    settings.refresh_rotation_threshold = 0.3
    for name, value in overrides.items():
        setattr(settings, name, value)
    return settings


def make_member(
    username: str = "traveler01",
    password_hash: str = "",
    **fields: Any,
) -> Member:
    """Build an unsaved member with sensible defaults."""
    values: dict[str, Any] = {
        "id": 1,
        "username": username,
        "email": f"{username}@example.com",
        "password": password_hash,
        "nickname": f"nick_{username}",
        "gender": Gender.UNKNOWN,
        "age_range": AgeRange.UNKNOWN,
        "travel_style": MemberTravelStyle.UNKNOWN,
        "rating": 0.0,
        "authority": Authority.USER.value,
        "verified": False,
        "deleted": False,
        "deleted_at": None,
        "created_at": utc_now(),
        "updated_at": utc_now(),
    }
    values.update(fields)
    return Member(**values)


def mock_db_returning(member: Member | None) -> AsyncMock:
    """Async session whose execute() resolves to ``member``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = member
    db = AsyncMock()
    db.execute.return_value = result
    db.add = MagicMock()
    return db


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    return make_jwt_settings()


@pytest.fixture
def codec(jwt_settings: MagicMock) -> TokenCodec:
    """Token codec with test settings."""
    return TokenCodec(jwt_settings)


@pytest.fixture
def expired_codec() -> TokenCodec:
    """Token codec whose tokens are already expired when issued."""
    return TokenCodec(
        make_jwt_settings(
            access_token_expire_minutes=-5,
            refresh_token_expire_days=-1,
            recovery_access_token_expire_minutes=-5,
            recovery_refresh_token_expire_days=-1,
        )
    )


@pytest.fixture
def backend() -> FakeKeyValueBackend:
    """Empty in-memory key-value backend."""
    return FakeKeyValueBackend()


@pytest.fixture
def store(backend: FakeKeyValueBackend) -> CredentialStore:
    """Credential store over the in-memory backend."""
    return CredentialStore(backend)


@pytest.fixture(scope="session")
def password_hasher() -> PasswordHasher:
    """Fast password hasher for tests."""
    return PasswordHasher(rounds=4)


@pytest.fixture(scope="session")
def secret_hash(password_hasher: PasswordHasher) -> str:
    """Hash of the password ``secret123``."""
    return password_hasher.hash("secret123")


@pytest.fixture
def restore_window() -> timedelta:
    """Default restore window."""
    return timedelta(days=30)


@pytest.fixture
def member_factory() -> Callable[..., Member]:
    """Factory for unsaved members."""
    return make_member


@pytest.fixture
def db_factory() -> Callable[[Member | None], AsyncMock]:
    """Factory for async sessions whose execute() resolves to a member."""
    return mock_db_returning


@pytest.fixture
def jwt_settings_factory() -> Callable[..., MagicMock]:
    """Factory for mock JWT settings with overrides."""
    return make_jwt_settings


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
