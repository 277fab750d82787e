# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic maintenance jobs.

Uses APScheduler to run the daily purge of soft-deleted members whose
restore window has closed. The purge opens its own database session and
needs no Redis connection.

Example:
    from tripfriend.infrastructure.background.scheduler import start_scheduler

    # Start scheduler with the purge job
    await start_scheduler(settings)

    # Stop at shutdown
    await stop_scheduler()
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tripfriend.domains.member.service import purge_expired_members
from tripfriend.infrastructure.database import DatabaseError, get_session

if TYPE_CHECKING:
    from tripfriend.core.config.settings import Settings

logger = logging.getLogger(__name__)

PURGE_JOB_ID = "member-purge"


class PurgeScheduler:
    """Scheduler running the daily member purge.

    Attributes:
        _settings: Application settings.
        _scheduler: APScheduler instance while running.
        last_run: When the purge last finished.
        run_count: Number of successful purges.
        error_count: Number of failed purges.
        purged_total: Members removed since start.
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize the scheduler.

        Args:
            settings: Application settings with the purge schedule.
        """
        self._settings = settings
        self._scheduler: AsyncIOScheduler | None = None
        self.last_run: datetime | None = None
        self.run_count = 0
        self.error_count = 0
        self.purged_total = 0

    @property
    def _restore_window(self) -> timedelta:
        return timedelta(days=self._settings.account.restore_window_days)

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._scheduler is not None

    def build_trigger(self) -> CronTrigger:
        """Daily trigger at the configured hour and minute (UTC)."""
        account = self._settings.account
        return CronTrigger(
            hour=account.purge_cron_hour,
            minute=account.purge_cron_minute,
            timezone=timezone.utc,
        )

    async def run_purge(self, now: datetime | None = None) -> int:
        """Hard-delete members whose restore window has closed.

        Args:
            now: Reference time, defaults to the current time.

        Returns:
            Number of members removed, 0 if the purge failed.
        """
        logger.info("Starting member purge")

        try:
            async with get_session() as session:
                purged = await purge_expired_members(session, self._restore_window, now)
        except DatabaseError as e:
            self.error_count += 1
            logger.error("Member purge failed: %s", str(e))
            return 0

        self.last_run = datetime.now(timezone.utc)
        self.run_count += 1
        self.purged_total += purged
        return purged

    async def start(self) -> None:
        """Start the scheduler and register the purge job."""
        if self._scheduler is not None:
            return

        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._scheduler.add_job(
            self.run_purge,
            trigger=self.build_trigger(),
            id=PURGE_JOB_ID,
            name="Daily Member Purge",
            replace_existing=True,
        )
        self._scheduler.start()

        logger.info(
            "Purge scheduler started (daily at %02d:%02d UTC)",
            self._settings.account.purge_cron_hour,
            self._settings.account.purge_cron_minute,
        )

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Purge scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics.

        Returns:
            Statistics dictionary.
        """
        return {
            "is_running": self.is_running,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "purged_total": self.purged_total,
        }


# Singleton instance
_scheduler: PurgeScheduler | None = None


def get_scheduler() -> PurgeScheduler | None:
    """Get the running scheduler instance, if any."""
    return _scheduler


async def start_scheduler(settings: "Settings") -> PurgeScheduler:
    """Start the scheduler with the daily purge job.

    Args:
        settings: Application settings.

    Returns:
        Started scheduler instance.
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = PurgeScheduler(settings)
    await _scheduler.start()
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
