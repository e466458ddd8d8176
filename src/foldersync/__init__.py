"""Folder Sync: mirror new files from source folders into a destination tree."""

__version__ = "1.0.0"

from .core import (
    FolderPair,
    SyncRecord,
    SyncStats,
    FolderSyncer,
    SyncOrchestrator,
    AggregateError,
    CopyError,
    DirectoryCreateError,
    ListError
)
from .history import SyncHistoryStore
from .service import SyncService

__all__ = [
    "FolderPair",
    "SyncRecord",
    "SyncStats",
    "FolderSyncer",
    "SyncOrchestrator",
    "AggregateError",
    "CopyError",
    "DirectoryCreateError",
    "ListError",
    "SyncHistoryStore",
    "SyncService"
]
