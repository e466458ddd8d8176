"""Bounded, newest-first sync history with JSON file persistence."""

import os
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..core.models import SyncRecord
from ..utils.logging import LoggerMixin, log_execution_time


DEFAULT_HISTORY_LIMIT = 50


class _HistoryDocument(BaseModel):
    """On-disk layout of the history file."""

    last_sync_date: Optional[datetime] = None
    records: List[SyncRecord] = Field(default_factory=list)


class SyncHistoryStore(LoggerMixin):
    """Keeps the most recent sync records and the last sync date.

    The store is created once per process and handed to whatever schedules
    runs. Every ``add_record`` is written through to ``path`` when one is
    set; ``close`` performs a final flush.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        max_records: int = DEFAULT_HISTORY_LIMIT,
        autosave: bool = True
    ):
        """Initialize the history store.

        Args:
            path: JSON file to persist to; memory only when None
            max_records: Number of records kept, oldest evicted first
            autosave: Write the file after every added record
        """
        if max_records < 1:
            raise ValueError("max_records must be at least 1")

        self.path = Path(path).expanduser() if path else None
        self.max_records = max_records
        self.autosave = autosave
        self._records: List[SyncRecord] = []
        self._last_sync_date: Optional[datetime] = None
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()

    @property
    def records(self) -> List[SyncRecord]:
        """Records, newest first."""
        with self._lock:
            return list(self._records)

    @property
    def last_sync_date(self) -> Optional[datetime]:
        with self._lock:
            return self._last_sync_date

    @property
    def latest(self) -> Optional[SyncRecord]:
        with self._lock:
            return self._records[0] if self._records else None

    def add_record(self, record: SyncRecord) -> None:
        """Insert ``record`` at the front and evict beyond ``max_records``."""
        with self._lock:
            self._records.insert(0, record)
            del self._records[self.max_records:]
            self._last_sync_date = record.timestamp

        self.logger.debug(
            "Sync record added",
            record_id=str(record.id),
            success=record.success,
            files_transferred=record.files_transferred
        )

        if self.autosave:
            self.save()

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._last_sync_date = None
        if self.autosave:
            self.save()

    def load(self) -> None:
        """Read the history file; a missing or corrupt file leaves the store empty."""
        if self.path is None or not self.path.exists():
            return

        try:
            document = _HistoryDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError) as e:
            self.logger.warning("Failed to load sync history", path=str(self.path), error=str(e))
            with self._lock:
                self._records = []
                self._last_sync_date = None
            return

        with self._lock:
            self._records = document.records[:self.max_records]
            self._last_sync_date = document.last_sync_date

        self.logger.info("Sync history loaded", path=str(self.path), records=len(document.records))

    @log_execution_time
    def save(self) -> None:
        """Write the history file atomically."""
        if self.path is None:
            return

        # One writer at a time: the file always holds the latest snapshot taken
        with self._save_lock:
            with self._lock:
                document = _HistoryDocument(
                    last_sync_date=self._last_sync_date,
                    records=list(self._records)
                )

            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)

    def close(self) -> None:
        """Flush the history before process exit."""
        self.save()
        self.logger.info("Sync history closed", records=len(self._records))
