"""Path resolution for logical folders.

Authorization (bookmarks, permission prompts) lives outside the sync core.
The core only asks a resolver for a usable absolute path and treats
``AccessDeniedError`` as a failure of that folder.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import AccessDeniedError
from ..utils.logging import get_logger


class PathResolver(ABC):
    """Abstract base class for path resolvers."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def resolve(self, logical_folder: str) -> Path:
        """Resolve a logical folder to an accessible absolute path.

        Args:
            logical_folder: Folder name or path as it appears in configuration

        Returns:
            Absolute path the caller may read from or write to

        Raises:
            AccessDeniedError: If the folder cannot be used
        """
        pass


class LocalPathResolver(PathResolver):
    """Resolves folders on the local filesystem below an optional base.

    Absolute logical folders are used as they are; relative ones are joined
    to ``base_dir``. Readability is checked with ``os.access``; a missing
    folder is denied only when ``must_exist`` is set.
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None, must_exist: bool = True):
        super().__init__()
        self.base_dir = Path(base_dir).expanduser() if base_dir else None
        self.must_exist = must_exist

    def resolve(self, logical_folder: str) -> Path:
        path = Path(logical_folder).expanduser()
        if not path.is_absolute():
            path = (self.base_dir / path) if self.base_dir else path
        path = path.absolute()

        if not path.exists():
            if self.must_exist:
                raise AccessDeniedError(logical_folder, f"{path} does not exist")
            return path

        if not path.is_dir():
            raise AccessDeniedError(logical_folder, f"{path} is not a directory")

        if not os.access(path, os.R_OK | os.X_OK):
            raise AccessDeniedError(logical_folder, f"{path} is not readable")

        return path


class StaticPathResolver(PathResolver):
    """Resolves logical folders from a fixed mapping.

    Folders without a mapping are denied. Useful when another component
    already negotiated access and hands over ready-made paths.
    """

    def __init__(self, mapping: Dict[str, Union[str, Path]]):
        super().__init__()
        self.mapping = {key: Path(value) for key, value in mapping.items()}

    def resolve(self, logical_folder: str) -> Path:
        try:
            return self.mapping[logical_folder]
        except KeyError:
            raise AccessDeniedError(logical_folder, "no path granted") from None
