"""Error taxonomy for folder synchronization."""

import errno
from pathlib import Path
from typing import List, Optional, Union


_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM}


def _is_permission_cause(cause: Optional[BaseException]) -> bool:
    if isinstance(cause, PermissionError):
        return True
    return isinstance(cause, OSError) and cause.errno in _PERMISSION_ERRNOS


class FolderSyncError(Exception):
    """Base exception for sync errors."""

    @property
    def is_permission_error(self) -> bool:
        """True when re-granting access to a folder could fix the failure."""
        cause = getattr(self, "cause", None) or self.__cause__
        return _is_permission_cause(cause)


class DirectoryCreateError(FolderSyncError):
    """Raised when a destination directory cannot be created."""

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = str(path)
        self.cause = cause
        message = f"Cannot create directory {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ListError(FolderSyncError):
    """Raised when a source directory cannot be listed."""

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = str(path)
        self.cause = cause
        message = f"Cannot read source folder {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class CopyError(FolderSyncError):
    """Raised when a single file fails to copy."""

    def __init__(self, file_name: str, cause: BaseException, files_copied: int = 0):
        self.file_name = file_name
        self.cause = cause
        self.files_copied = files_copied
        super().__init__(f"Failed to copy {file_name}: {cause}")


class AccessDeniedError(FolderSyncError):
    """Raised by a path resolver when a logical folder is not accessible."""

    def __init__(self, logical_folder: str, reason: str = "access denied"):
        self.logical_folder = logical_folder
        self.reason = reason
        super().__init__(f"Access to {logical_folder} denied: {reason}")

    @property
    def is_permission_error(self) -> bool:
        return True


class SyncInProgressError(FolderSyncError):
    """Raised when a run is requested while another is still running."""
    pass


class SyncCancelledError(FolderSyncError):
    """Raised when a run stops early because cancellation was requested."""

    def __init__(self, message: str, files_copied: int = 0):
        self.files_copied = files_copied
        super().__init__(message)


class AggregateError(FolderSyncError):
    """Raised when one or more folder pairs of a run failed.

    ``partial_copied_count`` holds the files copied by all pairs, including
    the ones that failed part way through.
    """

    def __init__(
        self,
        first_error: BaseException,
        partial_copied_count: int,
        errors: Optional[List[BaseException]] = None
    ):
        self.first_error = first_error
        self.partial_copied_count = partial_copied_count
        self.errors = list(errors) if errors else [first_error]
        super().__init__(str(first_error))

    @property
    def is_permission_error(self) -> bool:
        first = self.first_error
        if isinstance(first, FolderSyncError):
            return first.is_permission_error
        return _is_permission_cause(first)
