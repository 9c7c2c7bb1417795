"""APScheduler-based daemon mode.

Runs the monitor cycle on a fixed interval. A slow cycle delays the next one
instead of overlapping it (single instance, coalesced misfires).
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stockwatch.scrapers.scraper_service import MonitorService

logger = structlog.get_logger(__name__)

JOB_ID = "monitor_cycle"


class MonitorScheduler:
    """Schedules MonitorService.run_cycle() every `interval_seconds`."""

    def __init__(self, service: MonitorService, interval_seconds: int):
        """Initialize the scheduler.

        Args:
            service: Monitor service whose cycle is run
            interval_seconds: Seconds between cycle starts
        """
        self.service = service
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        # Held for the duration of a cycle so stop() can wait for it
        self._cycle_lock = asyncio.Lock()
        self.logger = logger.bind(service="monitor_scheduler")

    def start(self) -> Optional[Job]:
        """Start the scheduler with the first cycle due immediately.

        Must be called from within a running event loop.
        """
        if self.scheduler.running:
            self.logger.warning("scheduler_already_running")
            return None

        trigger = IntervalTrigger(seconds=max(1, self.interval_seconds), timezone="UTC")
        job = self.scheduler.add_job(
            func=self._run_cycle_wrapper,
            trigger=trigger,
            id=JOB_ID,
            name="Monitor cycle",
            replace_existing=True,
            max_instances=1,  # Never overlap cycles
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        self.logger.info("scheduler_started", interval_seconds=self.interval_seconds)
        return job

    async def stop(self) -> None:
        """Stop the scheduler once any cycle in progress has finished.

        Jobs still waiting to start are cancelled by the shutdown.
        """
        if not self.scheduler.running:
            self.logger.warning("scheduler_not_running")
            return

        async with self._cycle_lock:
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler applies shutdown on the next loop iteration
            await asyncio.sleep(0)
        self.logger.info("scheduler_stopped")

    async def _run_cycle_wrapper(self) -> None:
        """The function APScheduler calls.

        Catches everything so one failed cycle doesn't kill the daemon.
        """
        async with self._cycle_lock:
            try:
                await self.service.run_cycle()
            except Exception as e:
                self.logger.error("monitor_cycle_failed", error=str(e), exc_info=True)

    def is_running(self) -> bool:
        return self.scheduler.running
