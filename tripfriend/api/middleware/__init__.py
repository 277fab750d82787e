# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: Recovery-mode gate and logging context.
- limiter: slowapi rate limiter for login and verification codes.

Exports:
    AuthMiddleware: Recovery-mode gate middleware.
    limiter: Rate limiter instance.
"""

from tripfriend.api.middleware.auth import AuthMiddleware, extract_bearer_token
from tripfriend.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "AuthMiddleware",
    "extract_bearer_token",
    "limiter",
    "rate_limit_exceeded_handler",
]
