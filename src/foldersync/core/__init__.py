"""Core folder sync logic package."""

from .models import FolderPair, RunState, SyncRecord, SyncStats, check_disjoint_destinations
from .errors import (
    FolderSyncError,
    DirectoryCreateError,
    ListError,
    CopyError,
    AccessDeniedError,
    AggregateError,
    SyncInProgressError,
    SyncCancelledError
)
from .resolver import PathResolver, LocalPathResolver, StaticPathResolver
from .folder_syncer import FolderSyncer, ensure_directory, is_hidden
from .orchestrator import SyncOrchestrator, ProgressAggregator

__all__ = [
    "FolderPair",
    "RunState",
    "SyncRecord",
    "SyncStats",
    "check_disjoint_destinations",

    "FolderSyncError",
    "DirectoryCreateError",
    "ListError",
    "CopyError",
    "AccessDeniedError",
    "AggregateError",
    "SyncInProgressError",
    "SyncCancelledError",

    "PathResolver",
    "LocalPathResolver",
    "StaticPathResolver",
    "FolderSyncer",
    "ensure_directory",
    "is_hidden",
    "SyncOrchestrator",
    "ProgressAggregator"
]
