"""Sync history persistence."""

from .store import SyncHistoryStore, DEFAULT_HISTORY_LIMIT

__all__ = [
    "SyncHistoryStore",
    "DEFAULT_HISTORY_LIMIT"
]
