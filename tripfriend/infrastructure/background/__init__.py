# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background job infrastructure.

Provides the APScheduler-based scheduler that purges soft-deleted
members once their restore window has closed.

Scheduler:
    from tripfriend.infrastructure.background import start_scheduler, stop_scheduler

    await start_scheduler(settings)

    # Stop at shutdown
    await stop_scheduler()
"""

from tripfriend.infrastructure.background.scheduler import (
    PurgeScheduler,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "PurgeScheduler",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
