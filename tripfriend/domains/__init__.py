# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for TripFriend.

This package contains domain services that encapsulate business logic.

Domains:
    auth: Token codec, credential store and session management.
    member: Member lifecycle and email verification.
    recruit: Recruitment post search, sorting and CRUD.
"""
