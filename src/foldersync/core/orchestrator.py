"""Concurrent synchronization of several folder pairs."""

import asyncio
import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import AggregateError, SyncInProgressError
from .folder_syncer import DEFAULT_COPY_DELAY, FolderSyncer, ProgressCallback, ensure_directory
from .models import FolderPair, RunState, SyncStats, check_disjoint_destinations
from .resolver import LocalPathResolver, PathResolver
from ..utils.logging import get_logger, log_async_execution_time


class ProgressAggregator:
    """Combines per-pair progress into one running total.

    Every update goes through a single lock, so the aggregate is recomputed
    and emitted in the order updates arrive and no update is lost when
    several pairs report at the same time.
    """

    def __init__(self, labels: Sequence[str], on_progress: Optional[ProgressCallback] = None):
        self._slots: Dict[str, SyncStats] = {label: SyncStats() for label in labels}
        self._on_progress = on_progress
        self._lock = asyncio.Lock()

    @property
    def combined(self) -> SyncStats:
        total = SyncStats()
        for stats in self._slots.values():
            total = total + stats
        return total

    async def start(self, totals: Dict[str, int]) -> SyncStats:
        """Seed every pair with its total and emit the initial aggregate."""
        async with self._lock:
            for label, total_files in totals.items():
                self._slots[label] = SyncStats(0, total_files)
            combined = self.combined
            await self._emit(combined)
            return combined

    def snapshot(self) -> Dict[str, SyncStats]:
        return {label: SyncStats(s.files_copied, s.total_files) for label, s in self._slots.items()}

    async def update(self, label: str, stats: SyncStats) -> SyncStats:
        """Store ``stats`` for ``label`` and emit the new aggregate."""
        async with self._lock:
            self._slots[label] = SyncStats(stats.files_copied, stats.total_files)
            combined = self.combined
            await self._emit(combined)
            return combined

    async def _emit(self, combined: SyncStats) -> None:
        if self._on_progress is None:
            return
        result = self._on_progress(combined)
        if inspect.isawaitable(result):
            await result


@dataclass
class _PreparedPair:
    pair: FolderPair
    source: Path
    destination: Path
    entries: List[str]


class SyncOrchestrator:
    """Runs one ``FolderSyncer`` per folder pair and aggregates the outcome.

    A failing pair never cancels its siblings: the orchestrator waits for
    every pair, then raises ``AggregateError`` carrying the first failure and
    the number of files copied overall.
    """

    def __init__(
        self,
        destination_root: Union[str, Path],
        resolver: Optional[PathResolver] = None,
        copy_delay: float = DEFAULT_COPY_DELAY
    ):
        """Initialize the orchestrator.

        Args:
            destination_root: Directory that receives one subfolder per pair
            resolver: Resolves each pair's source folder, defaults to the
                local filesystem
            copy_delay: Pacing delay handed to every ``FolderSyncer``
        """
        self.destination_root = Path(destination_root)
        self.resolver = resolver or LocalPathResolver()
        self.syncer = FolderSyncer(copy_delay=copy_delay)
        self.logger = get_logger(self.__class__.__name__)

        self._state = RunState.IDLE
        self.last_stats: Dict[str, SyncStats] = {}
        self.last_copied: Dict[str, int] = {}

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == RunState.RUNNING

    @log_async_execution_time
    async def run_sync(
        self,
        pairs: Sequence[FolderPair],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> int:
        """Sync all pairs concurrently.

        Args:
            pairs: Folder pairs with disjoint destination subpaths
            on_progress: Receives the combined ``SyncStats`` after every
                per-pair update
            cancel_event: Optional event checked between files by every pair

        Returns:
            Total number of files copied across all pairs

        Raises:
            SyncInProgressError: If a run on this orchestrator is already active
            ValueError: If destination subpaths overlap
            DirectoryCreateError: If the destination root cannot be created
            AggregateError: If one or more pairs failed
        """
        if self._state == RunState.RUNNING:
            raise SyncInProgressError("A sync run is already in progress")

        self._state = RunState.RUNNING
        try:
            total = await self._run(list(pairs), on_progress, cancel_event)
        except BaseException:
            self._state = RunState.FAILED
            raise

        self._state = RunState.COMPLETED
        return total

    async def _run(
        self,
        pairs: List[FolderPair],
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event]
    ) -> int:
        check_disjoint_destinations(pair.destination_subpath for pair in pairs)
        labels = [pair.label for pair in pairs]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Folder pair names must be unique: {labels}")

        self.logger.info(
            "Starting sync run",
            pairs=[pair.label for pair in pairs],
            destination_root=str(self.destination_root)
        )

        await ensure_directory(self.destination_root)

        failures: List[Tuple[str, BaseException]] = []
        copied: Dict[str, int] = {pair.label: 0 for pair in pairs}
        aggregator = ProgressAggregator([pair.label for pair in pairs], on_progress)

        prepared = await asyncio.gather(*(self._prepare(pair, failures) for pair in pairs))
        ready = [item for item in prepared if item is not None]

        # All totals are known before the first copy, so the combined total
        # stays fixed for the rest of the run.
        await aggregator.start({item.pair.label: len(item.entries) for item in ready})

        await asyncio.gather(*(
            self._sync_pair(item, aggregator, copied, failures, cancel_event)
            for item in ready
        ))

        self.last_stats = aggregator.snapshot()
        self.last_copied = dict(copied)
        total_copied = sum(copied.values())

        if failures:
            label, first_error = failures[0]
            self.logger.error(
                "Sync run failed",
                failed_pairs=[failed_label for failed_label, _ in failures],
                first_failed_pair=label,
                files_copied=total_copied,
                error=str(first_error)
            )
            raise AggregateError(
                first_error,
                total_copied,
                [error for _, error in failures]
            )

        self.logger.info(
            "Sync run completed",
            files_copied=total_copied,
            per_pair=copied
        )
        return total_copied

    async def _prepare(
        self,
        pair: FolderPair,
        failures: List[Tuple[str, BaseException]]
    ) -> Optional[_PreparedPair]:
        """Resolve and list one pair; failures are recorded, not raised."""
        try:
            source = await asyncio.to_thread(self.resolver.resolve, pair.source_path)
            entries = await self.syncer.list_entries(source)
        except Exception as e:
            self.logger.error("Failed to prepare folder pair", pair=pair.label, error=str(e))
            failures.append((pair.label, e))
            return None

        return _PreparedPair(
            pair=pair,
            source=source,
            destination=self.destination_root / pair.destination_subpath,
            entries=entries
        )

    async def _sync_pair(
        self,
        item: _PreparedPair,
        aggregator: ProgressAggregator,
        copied: Dict[str, int],
        failures: List[Tuple[str, BaseException]],
        cancel_event: Optional[asyncio.Event]
    ) -> None:
        label = item.pair.label

        async def report(stats: SyncStats) -> None:
            await aggregator.update(label, stats)

        try:
            copied[label] = await self.syncer.sync_folder(
                item.source,
                item.destination,
                on_progress=report,
                entries=item.entries,
                cancel_event=cancel_event
            )
        except Exception as e:
            copied[label] = getattr(e, "files_copied", 0)
            failures.append((label, e))
