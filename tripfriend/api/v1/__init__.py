# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Authentication endpoints (login, logout, refresh, me).
    members: Member account endpoints (join, profile, delete, restore, email).
    recruits: Travel-companion recruitment endpoints (search, CRUD).
"""

from fastapi import APIRouter

from tripfriend.api.v1 import auth, members, recruits

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(members.router, prefix="/members", tags=["Members"])
router.include_router(recruits.router, prefix="/recruits", tags=["Recruits"])

__all__ = ["router"]
