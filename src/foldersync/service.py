"""Sync service: one trigger, one orchestrator run, one history record."""

import asyncio
from pathlib import Path
from typing import Optional

from .config.schema import SyncConfig
from .core import (
    AggregateError,
    FolderSyncError,
    LocalPathResolver,
    PathResolver,
    SyncInProgressError,
    SyncOrchestrator,
    SyncRecord,
)
from .core.folder_syncer import ProgressCallback
from .history import SyncHistoryStore
from .utils.logging import get_logger, log_async_execution_time


class SyncService:
    """Runs configured folder pairs and records every outcome.

    The service owns the "one run at a time" rule: ``trigger`` is a no-op
    while a run is active, ``run_once`` raises ``SyncInProgressError``.
    """

    def __init__(
        self,
        config: SyncConfig,
        history: Optional[SyncHistoryStore] = None,
        source_resolver: Optional[PathResolver] = None,
        destination_resolver: Optional[PathResolver] = None
    ):
        """Initialize the sync service.

        Args:
            config: Validated sync configuration
            history: History store shared with the scheduler and the caller
            source_resolver: Resolves pair sources, defaults to local paths
                below ``config.source_root``
            destination_resolver: Resolves ``config.destination_root``
        """
        self.config = config
        self.history = history or SyncHistoryStore(max_records=config.history_limit)
        self.source_resolver = source_resolver or LocalPathResolver(config.source_root)
        self.destination_resolver = destination_resolver or LocalPathResolver()
        self.logger = get_logger(self.__class__.__name__)

        self.orchestrator: Optional[SyncOrchestrator] = None
        self.last_error: Optional[BaseException] = None
        self._running = False

        self.logger.info(
            "Sync service initialized",
            pairs=[pair.name for pair in config.get_active_pairs()],
            destination_folder=config.destination_folder
        )

    @property
    def is_running(self) -> bool:
        return self._running

    async def trigger(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[SyncRecord]:
        """Start a run unless one is already active.

        Returns:
            The new record, or None when a run was already in progress
        """
        if self._running:
            self.logger.info("Sync already in progress, ignoring trigger")
            return None
        return await self.run_once(on_progress=on_progress, cancel_event=cancel_event)

    @log_async_execution_time
    async def run_once(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> SyncRecord:
        """Sync every active pair once and append the outcome to history.

        Failures are logged and turned into a failed record, never raised;
        ``last_error`` keeps the exception for callers that need to react to
        permission problems.

        Raises:
            SyncInProgressError: If a run is already active
        """
        if self._running:
            raise SyncInProgressError("A sync run is already in progress")

        self._running = True
        self.last_error = None
        try:
            record = await self._run(on_progress, cancel_event)
        finally:
            self._running = False

        self._record(record)
        return record

    def resolve_destination_root(self) -> Path:
        """Destination folder of the mirrored tree for the current config."""
        base = self.destination_resolver.resolve(self.config.destination_root)
        return base / self.config.destination_folder

    async def _run(
        self,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event]
    ) -> SyncRecord:
        try:
            destination_root = await asyncio.to_thread(self.resolve_destination_root)
            self.orchestrator = SyncOrchestrator(
                destination_root=destination_root,
                resolver=self.source_resolver,
                copy_delay=self.config.copy_delay_seconds
            )
            total = await self.orchestrator.run_sync(
                self.config.get_folder_pairs(),
                on_progress=on_progress,
                cancel_event=cancel_event
            )
        except AggregateError as e:
            self.last_error = e
            self.logger.error(
                "Sync failed",
                files_transferred=e.partial_copied_count,
                failed_pairs=len(e.errors),
                permission_error=e.is_permission_error,
                error=str(e)
            )
            return SyncRecord.failed(e.partial_copied_count, str(e))
        except (FolderSyncError, ValueError, OSError) as e:
            self.last_error = e
            self.logger.error("Sync failed before any pair started", error=str(e))
            return SyncRecord.failed(0, str(e))

        self.logger.info("Sync completed successfully", files_transferred=total)
        return SyncRecord.succeeded(total)

    def _record(self, record: SyncRecord) -> None:
        try:
            self.history.add_record(record)
        except OSError as e:
            self.logger.warning(
                "Failed to persist sync record",
                record_id=str(record.id),
                error=str(e)
            )
