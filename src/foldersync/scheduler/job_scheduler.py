"""Job scheduler for automatic sync runs."""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.job import Job

from ..config import ScheduleConfig, SyncInterval
from ..core import FolderSyncError, SyncRecord, is_hidden
from ..service import SyncService
from ..utils.logging import get_logger, log_async_execution_time


PERIODIC_JOB_ID = "periodic_sync"
POLL_JOB_ID = "new_file_poll"


class SchedulerError(Exception):
    """Raised when scheduler operations fail."""
    pass


def compute_next_run(
    interval: SyncInterval,
    last_sync_date: Optional[datetime],
    now: Optional[datetime] = None,
    late_start_delay: float = 5.0
) -> Optional[datetime]:
    """Next automatic run for a periodic interval.

    The run is due one interval after the last sync, or one interval from now
    when nothing has synced yet. A due time already in the past is moved to
    ``late_start_delay`` seconds from now.

    Returns:
        The next run time, or None when the interval is not periodic
    """
    if not interval.is_periodic:
        return None

    now = now or datetime.now(timezone.utc)
    period = timedelta(seconds=interval.seconds)

    if last_sync_date is None:
        return now + period

    if last_sync_date.tzinfo is None:
        last_sync_date = last_sync_date.replace(tzinfo=timezone.utc)

    next_run = last_sync_date + period
    if next_run <= now:
        return now + timedelta(seconds=late_start_delay)
    return next_run


def count_visible_entries(folder: str) -> Optional[int]:
    """Number of non-hidden entries in ``folder``, None when unreadable."""
    try:
        with os.scandir(folder) as entries:
            return sum(1 for entry in entries if not is_hidden(entry.name))
    except OSError:
        return None


class SyncScheduler:
    """Schedules sync runs from the configured interval.

    Periodic intervals get one repeating job anchored on the last sync date.
    ``on_new_files`` gets a polling job that triggers a sync whenever a
    source folder holds more visible entries than at the previous poll.
    """

    def __init__(self, service: SyncService, schedule: Optional[ScheduleConfig] = None):
        """Initialize job scheduler.

        Args:
            service: Sync service that performs the runs
            schedule: Schedule configuration, defaults to the service config
        """
        self.service = service
        self.schedule = schedule or service.config.schedule
        self.logger = get_logger(self.__class__.__name__)

        self.scheduler = AsyncIOScheduler(
            job_defaults={
                'coalesce': True,  # Combine multiple pending executions
                'max_instances': 1,  # Only one instance per job
                'misfire_grace_time': 300  # 5 minutes grace time
            },
            timezone=timezone.utc
        )

        self.active_jobs: Dict[str, Job] = {}
        self.job_stats: Dict[str, Any] = {
            "run_count": 0,
            "success_count": 0,
            "error_count": 0,
            "skipped_count": 0,
            "last_run": None,
            "last_result": None
        }
        self._last_counts: Dict[str, int] = {}

        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed, EVENT_JOB_MISSED)

        self.logger.info("Job scheduler initialized", interval=self.schedule.interval.value)

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    @property
    def next_run_time(self) -> Optional[datetime]:
        job = self.active_jobs.get(PERIODIC_JOB_ID)
        return job.next_run_time if job else None

    async def start(self):
        """Start the scheduler and add the jobs for the configured interval."""
        if self.scheduler.running:
            self.logger.warning("Scheduler is already running")
            return

        try:
            self.scheduler.start()
            await self.reload_jobs()
        except Exception as e:
            self.logger.error("Failed to start scheduler", error=str(e))
            raise SchedulerError(f"Failed to start scheduler: {e}") from e

        self.logger.info(
            "Job scheduler started successfully",
            active_jobs=list(self.active_jobs)
        )

    async def stop(self, wait: bool = False):
        """Stop the scheduler.

        Args:
            wait: Whether to wait for running jobs to complete
        """
        if not self.scheduler.running:
            self.logger.warning("Scheduler is not running")
            return

        self.scheduler.shutdown(wait=wait)
        # AsyncIOScheduler may finish shutting down on a later loop iteration
        while self.scheduler.running:
            await asyncio.sleep(0)
        self.active_jobs.clear()
        self.logger.info("Job scheduler stopped successfully")

    async def reschedule(self, interval: SyncInterval) -> None:
        """Switch to a new interval, replacing the existing jobs."""
        self.schedule = self.schedule.model_copy(update={"interval": interval})
        self.service.config.schedule = self.schedule
        self.logger.info("Rescheduling", interval=interval.value)
        if self.scheduler.running:
            await self.reload_jobs()

    async def reload_jobs(self) -> None:
        """Remove all jobs and add the ones the current interval needs."""
        self.scheduler.remove_all_jobs()
        self.active_jobs.clear()
        self._last_counts.clear()

        interval = self.schedule.interval

        if interval == SyncInterval.ON_NEW_FILES:
            # Baseline counts, so only files added after this point trigger a run
            await asyncio.to_thread(self._poll_counts)
            self._add_poll_job()
        elif interval.is_periodic:
            self._add_periodic_job()
        else:
            self.logger.info("Automatic sync disabled")

    def _add_periodic_job(self) -> None:
        interval = self.schedule.interval
        next_run = compute_next_run(
            interval,
            self.service.history.last_sync_date,
            late_start_delay=self.schedule.late_start_delay_seconds
        )

        job = self.scheduler.add_job(
            func=self._execute_sync_job,
            trigger=IntervalTrigger(seconds=interval.seconds, timezone=timezone.utc),
            next_run_time=next_run,
            id=PERIODIC_JOB_ID,
            name=f"Sync: {interval.value}",
            replace_existing=True
        )
        self.active_jobs[PERIODIC_JOB_ID] = job

        self.logger.info(
            "Periodic sync scheduled",
            interval=interval.value,
            next_run=next_run.isoformat() if next_run else None
        )

    def _add_poll_job(self) -> None:
        job = self.scheduler.add_job(
            func=self.poll_for_new_files,
            trigger=IntervalTrigger(seconds=self.schedule.poll_interval_seconds, timezone=timezone.utc),
            id=POLL_JOB_ID,
            name="Poll for new files",
            replace_existing=True
        )
        self.active_jobs[POLL_JOB_ID] = job

        self.logger.info(
            "Polling for new files",
            poll_interval_seconds=self.schedule.poll_interval_seconds,
            folders=list(self._last_counts)
        )

    async def trigger_sync(self) -> Optional[SyncRecord]:
        """Manually trigger a sync; None when a run is already active."""
        self.logger.info("Manually triggering sync")
        return await self._execute_sync_job()

    async def poll_for_new_files(self) -> bool:
        """Compare visible entry counts with the previous poll.

        Returns:
            True when new files were found and a sync was triggered
        """
        found_new_files = await asyncio.to_thread(self._poll_counts)
        if found_new_files:
            self.logger.info("New files detected, triggering sync")
            await self._execute_sync_job()
        return found_new_files

    def _poll_counts(self) -> bool:
        found_new_files = False
        for folder in self._source_folders():
            count = count_visible_entries(folder)
            if count is None:
                continue
            last_count = self._last_counts.get(folder)
            if last_count is not None and count > last_count:
                found_new_files = True
            self._last_counts[folder] = count
        return found_new_files

    def _source_folders(self) -> List[str]:
        folders = []
        for pair in self.service.config.get_folder_pairs():
            try:
                folders.append(str(self.service.source_resolver.resolve(pair.source_path)))
            except (FolderSyncError, OSError) as e:
                self.logger.debug("Skipping unresolvable folder", pair=pair.label, error=str(e))
        return folders

    @log_async_execution_time
    async def _execute_sync_job(self) -> Optional[SyncRecord]:
        """Run one sync through the service and update job statistics."""
        record = await self.service.trigger()

        if record is None:
            self.job_stats["skipped_count"] += 1
            return None

        self.job_stats["run_count"] += 1
        self.job_stats["last_run"] = record.timestamp
        self.job_stats["last_result"] = {
            "success": record.success,
            "files_transferred": record.files_transferred,
            "error_message": record.error_message
        }
        if record.success:
            self.job_stats["success_count"] += 1
        else:
            self.job_stats["error_count"] += 1

        self.logger.info(
            "Sync job finished",
            success=record.success,
            files_transferred=record.files_transferred,
            next_run=self.next_run_time.isoformat() if self.next_run_time else None
        )

        return record

    def get_scheduler_stats(self) -> Dict[str, Any]:
        """Get overall scheduler statistics."""
        return {
            "is_running": self.scheduler.running,
            "interval": self.schedule.interval.value,
            "total_jobs": len(self.active_jobs),
            "next_run": self.next_run_time,
            **self.job_stats
        }

    def _job_error(self, event):
        """Handle job error event."""
        self.job_stats["error_count"] += 1
        self.logger.error(
            "Scheduled job failed",
            job_id=event.job_id,
            error=str(event.exception)
        )

    def _job_missed(self, event):
        """Handle job missed event."""
        self.logger.warning(
            "Scheduled job missed",
            job_id=event.job_id,
            scheduled_run_time=event.scheduled_run_time
        )
