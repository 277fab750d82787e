# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for TripFriend.

Settings are Pydantic-based and loaded from environment variables.

Example:
    >>> from tripfriend.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.jwt.access_token_expire_minutes)
    30
"""

from tripfriend.core.config.settings import (
    AccountSettings,
    APISettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    MailSettings,
    OAuthSettings,
    RateLimitSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "JWTSettings",
    "AccountSettings",
    "MailSettings",
    "OAuthSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
]
