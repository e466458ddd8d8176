"""Incremental copy of one source folder into one destination folder."""

import asyncio
import inspect
import os
import shutil
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from .errors import CopyError, DirectoryCreateError, ListError, SyncCancelledError
from .models import SyncStats
from ..utils.logging import get_logger


ProgressCallback = Callable[[SyncStats], Union[None, Awaitable[None]]]

DEFAULT_COPY_DELAY = 0.05  # seconds between copies
_COPY_CHUNK = 1024 * 1024


def is_hidden(name: str) -> bool:
    """Return True for dot-files such as ``.DS_Store``."""
    return name.startswith(".")


async def ensure_directory(path: Union[str, Path]) -> Path:
    """Create ``path`` and any missing parents.

    Raises:
        DirectoryCreateError: If the directory cannot be created, including
            when a non-directory already occupies the path
    """
    path = Path(path)
    try:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(path, e) from e
    return path


def _list_names(source: Path) -> List[str]:
    return sorted(os.listdir(source))


def _copy_entry(source: Path, destination: Path) -> None:
    """Copy one file (or a directory tree) without ever overwriting.

    Symbolic links are recreated as links, dangling ones included.
    """
    if source.is_symlink():
        os.symlink(os.readlink(source), destination)
        return

    if source.is_dir():
        try:
            shutil.copytree(source, destination, symlinks=True)
        except FileExistsError:
            raise
        except OSError:
            shutil.rmtree(destination, ignore_errors=True)
            raise
        return

    created = False
    try:
        with open(source, "rb") as src, open(destination, "xb") as dst:
            created = True
            shutil.copyfileobj(src, dst, _COPY_CHUNK)
        shutil.copystat(source, destination)
    except OSError:
        if created:
            try:
                destination.unlink()
            except FileNotFoundError:
                pass
        raise


class FolderSyncer:
    """Copies the entries of a source folder that the destination lacks.

    An entry counts as synced as soon as a file of the same name exists in
    the destination; contents are never compared and nothing is overwritten.
    Re-running on an unchanged pair therefore copies nothing.
    """

    def __init__(self, copy_delay: float = DEFAULT_COPY_DELAY):
        """Initialize the folder syncer.

        Args:
            copy_delay: Seconds to wait after each copied file, 0 disables pacing
        """
        if copy_delay < 0:
            raise ValueError("copy_delay must not be negative")
        self.copy_delay = copy_delay
        self.logger = get_logger(self.__class__.__name__)

    async def list_entries(self, source: Union[str, Path]) -> List[str]:
        """List the immediate entries of ``source``, sorted by name.

        Raises:
            ListError: If the folder is missing, not a directory or unreadable
        """
        source = Path(source)
        try:
            return await asyncio.to_thread(_list_names, source)
        except OSError as e:
            raise ListError(source, e) from e

    async def sync_folder(
        self,
        source: Union[str, Path],
        destination: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
        entries: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> int:
        """Copy every new entry of ``source`` into ``destination``.

        Args:
            source: Existing, readable source directory
            destination: Destination directory, created when missing
            on_progress: Called with cumulative ``SyncStats`` once the total
                is known and after every resolved entry; may be a coroutine
                function
            entries: Entry names from a previous ``list_entries`` call; the
                source is listed when omitted
            cancel_event: Checked before each entry; stops the run when set

        Returns:
            Number of entries actually copied (skipped and hidden excluded)

        Raises:
            DirectoryCreateError: If the destination cannot be created
            ListError: If the source cannot be listed
            CopyError: On the first entry that fails to copy
            SyncCancelledError: If ``cancel_event`` was set mid-run
        """
        source = Path(source)
        destination = await ensure_directory(destination)

        names = list(entries) if entries is not None else await self.list_entries(source)

        stats = SyncStats(files_copied=0, total_files=len(names))
        copied = 0
        await self._report(on_progress, stats)

        self.logger.debug(
            "Syncing folder",
            source=str(source),
            destination=str(destination),
            total_files=stats.total_files
        )

        for name in names:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(
                    "Folder sync cancelled",
                    source=str(source),
                    files_copied=copied
                )
                raise SyncCancelledError(
                    f"Sync of {source} cancelled after {copied} files",
                    files_copied=copied
                )

            target = destination / name

            if is_hidden(name) or await asyncio.to_thread(os.path.lexists, target):
                stats.files_copied += 1
                await self._report(on_progress, stats)
                continue

            try:
                await asyncio.to_thread(_copy_entry, source / name, target)
            except OSError as e:
                self.logger.error(
                    "File copy failed",
                    file_name=name,
                    source=str(source),
                    destination=str(destination),
                    files_copied=copied,
                    error=str(e)
                )
                raise CopyError(name, e, files_copied=copied) from e

            copied += 1
            stats.files_copied += 1
            self.logger.debug("Copied file", file_name=name, destination=str(destination))
            await self._report(on_progress, stats)

            if self.copy_delay:
                await asyncio.sleep(self.copy_delay)

        self.logger.info(
            "Folder sync completed",
            source=str(source),
            destination=str(destination),
            files_copied=copied,
            total_files=stats.total_files
        )

        return copied

    async def _report(self, on_progress: Optional[ProgressCallback], stats: SyncStats) -> None:
        if on_progress is None:
            return
        result = on_progress(SyncStats(stats.files_copied, stats.total_files))
        if inspect.isawaitable(result):
            await result
