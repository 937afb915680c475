import asyncio
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from bart_facade.core.config import Settings
from bart_facade.jobs.cache_refresh import (
    ElevatorStatusRefreshJob,
    RefreshSummary,
    StationListRefreshJob,
)

logger = logging.getLogger(__name__)

STATION_LIST_JOB_ID = "station_list_refresh"
ELEVATOR_STATUS_JOB_ID = "elevator_status_refresh"


class RefreshScheduler:
    """Drives the station list and elevator status refresh cycles."""

    def __init__(
        self,
        settings: Settings,
        station_job: StationListRefreshJob,
        elevator_job: ElevatorStatusRefreshJob,
    ):
        self.settings = settings
        self.station_job = station_job
        self.elevator_job = elevator_job
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup scheduled jobs; both also fire once as soon as the scheduler starts."""
        now = datetime.now(timezone.utc)

        self.scheduler.add_job(
            func=self._refresh_station_list,
            trigger=IntervalTrigger(
                hours=self.settings.station_list_refresh_interval_hours
            ),
            id=STATION_LIST_JOB_ID,
            name="Refresh station list and station details",
            next_run_time=now,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            func=self._refresh_elevator_status,
            trigger=IntervalTrigger(
                minutes=self.settings.elevator_status_refresh_interval_minutes
            ),
            id=ELEVATOR_STATUS_JOB_ID,
            name="Refresh elevator status",
            next_run_time=now,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    async def start(self):
        """Start the scheduler."""
        logger.info("Starting BART refresh scheduler")
        self.scheduler.start()

    async def stop(self):
        """Stop the scheduler."""
        logger.info("Stopping BART refresh scheduler")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def _refresh_station_list(self) -> RefreshSummary:
        summary = await self.station_job.run()
        if not summary.succeeded:
            logger.warning(
                "Station list cycle failed, next attempt on the next tick: %s",
                summary.error,
            )
        return summary

    async def _refresh_elevator_status(self) -> RefreshSummary:
        summary = await self.elevator_job.run()
        if not summary.succeeded:
            logger.warning(
                "Elevator status cycle failed, next attempt on the next tick: %s",
                summary.error,
            )
        return summary

    async def refresh_now(self) -> list[RefreshSummary]:
        """Run both cycles once, concurrently and independently."""
        return list(
            await asyncio.gather(
                self._refresh_station_list(), self._refresh_elevator_status()
            )
        )

    def get_job_info(self) -> dict:
        """Get information about scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run_time = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run_time.isoformat() if next_run_time else None,
                    "trigger": str(job.trigger),
                }
            )

        return {
            "scheduler_running": self.scheduler.running,
            "jobs": jobs,
        }
