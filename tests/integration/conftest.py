# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for API integration tests.

The full application is built with create_app() and its database, Redis
and mail dependencies are replaced with in-memory stand-ins. The
lifespan is not run, so no real connections are opened.
"""

from typing import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tripfriend.api import create_app
from tripfriend.api.dependencies import (
    get_db,
    get_mail_sender,
    get_password_hasher,
    get_redis_backend,
)
from tripfriend.api.middleware.rate_limit import limiter
from tripfriend.core.config import clear_settings_cache, get_settings
from tripfriend.domains.auth.jwt import TokenCodec

API_SECRET = "integration-secret-key-for-api-tests"


@pytest.fixture
def db() -> AsyncMock:
    """Async session whose lookups resolve to nothing until a test sets a member."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    result.scalars.return_value.first.return_value = None
    result.scalars.return_value.all.return_value = []
    session = AsyncMock()
    session.execute.return_value = result
    session.add = MagicMock()
    return session


@pytest.fixture
def mail_sender() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def app(monkeypatch, db, backend, password_hasher, mail_sender) -> Iterator[FastAPI]:
    """Application wired to in-memory dependencies."""
    monkeypatch.setenv("JWT_SECRET_KEY", API_SECRET)
    clear_settings_cache()
    limiter.reset()

    application = create_app()

    async def override_db():
        yield db

    application.dependency_overrides[get_db] = override_db
    application.dependency_overrides[get_redis_backend] = lambda: backend
    application.dependency_overrides[get_password_hasher] = lambda: password_hasher
    application.dependency_overrides[get_mail_sender] = lambda: mail_sender

    yield application

    application.dependency_overrides.clear()
    clear_settings_cache()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def api_codec(app: FastAPI) -> TokenCodec:
    """Codec sharing the application's signing key."""
    return TokenCodec(get_settings().jwt)


def resolve_to(db: AsyncMock, member) -> None:
    """Make every single-row lookup on ``db`` return ``member``."""
    db.execute.return_value.scalar_one_or_none.return_value = member


@pytest.fixture
def set_member(db):
    """Setter making database lookups return the given member."""
    return lambda member: resolve_to(db, member)
