"""TripFriend Backend.

Travel companion matching service: member accounts with JWT sessions
backed by Redis, and filtered search over trip recruitment posts.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
