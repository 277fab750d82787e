# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception handlers mapping domain and store errors to HTTP responses.

Domain error codes carry their HTTP status as a prefix ("401-5" is a
401), so a single handler serves every domain hierarchy. Failures of
Redis, the database or the mail server are reported as 503 and are
never confused with an authentication outcome.

Every error body has the shape ``{"code": ..., "detail": ...}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from tripfriend.domains.auth.exceptions import AuthError
from tripfriend.domains.member.service import MemberServiceError
from tripfriend.domains.recruit.service import RecruitServiceError
from tripfriend.infrastructure.cache import RedisError
from tripfriend.infrastructure.database import DatabaseError
from tripfriend.infrastructure.notifications.mail import MailDeliveryError

logger = logging.getLogger(__name__)

DomainError = AuthError | MemberServiceError | RecruitServiceError


class ErrorResponse(BaseModel):
    """Error body returned for domain and infrastructure failures."""

    code: str = Field(description="Stable error code, e.g. 401-5")
    detail: str = Field(description="Human-readable message")


def status_for_code(code: str) -> int:
    """Derive the HTTP status from a domain error code.

    Args:
        code: Error code such as "410-2".

    Returns:
        HTTP status code, 400 if the code has no numeric prefix.
    """
    prefix = code.split("-", 1)[0]
    return int(prefix) if prefix.isdigit() else 400


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error with its code and message."""
    status_code = status_for_code(exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None

    logger.info(
        "Domain error on %s %s: %s (%s)",
        request.method,
        request.url.path,
        exc.code,
        exc.message,
    )

    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "detail": exc.message},
        headers=headers,
    )


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an infrastructure failure as 503 Service Unavailable."""
    logger.error(
        "Backing service failure on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
    )

    return JSONResponse(
        status_code=503,
        content={"code": "503-1", "detail": "A backing service is unavailable"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the application.

    Args:
        app: FastAPI application.
    """
    for error_type in (AuthError, MemberServiceError, RecruitServiceError):
        app.add_exception_handler(error_type, domain_error_handler)

    for error_type in (RedisError, DatabaseError, SQLAlchemyError, MailDeliveryError):
        app.add_exception_handler(error_type, store_unavailable_handler)
