# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Login and the verification code endpoints are limited per client IP to
slow down credential stuffing and code guessing.

Example:
    @router.post("/login")
    @limiter.limit(RATE_LIMIT_LOGIN, key_func=get_ip_only)
    async def login(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from tripfriend.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses the token subject if the request carries readable claims,
    otherwise the IP address.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    claims = getattr(request.state, "claims", None)
    if claims is not None:
        return f"member:{claims.sub}"
    return f"ip:{get_remote_address(request)}"


def get_ip_only(request: Request) -> str:
    """Get client IP address only.

    Used for login endpoints where the member is not yet authenticated.

    Args:
        request: HTTP request.

    Returns:
        IP address string.
    """
    return get_remote_address(request)


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.rate_limit.enabled,
)

RATE_LIMIT_LOGIN = settings.rate_limit.login
RATE_LIMIT_EMAIL_CODE = settings.rate_limit.email_code
RATE_LIMIT_EMAIL_VERIFY = settings.rate_limit.email_verify


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Handle rate limit exceeded errors.

    Returns a 429 Too Many Requests response.

    Args:
        request: HTTP request.
        exc: Rate limit exceeded exception.

    Returns:
        JSON response with error details.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )

    return JSONResponse(
        status_code=429,
        content={"code": "429-1", "detail": "Too many requests. Please try again later."},
        headers={"Retry-After": "60"},
    )
