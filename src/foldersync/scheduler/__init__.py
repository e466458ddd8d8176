"""Scheduler package for automatic sync runs."""

from .job_scheduler import (
    SyncScheduler,
    SchedulerError,
    compute_next_run,
    count_visible_entries
)

__all__ = [
    "SyncScheduler",
    "SchedulerError",
    "compute_next_run",
    "count_visible_entries"
]
