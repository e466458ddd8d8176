"""
Shared fixtures for the folder-sync test suite.
"""
import os
import sys
from pathlib import Path
from typing import Iterable, List

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from foldersync.config import SyncConfig, reset_settings
from foldersync.core import SyncStats
from foldersync.utils.logging import setup_logging


FOLDERSYNC_ENV_VARS = [
    "FOLDERSYNC_CONFIG_FILE",
    "FOLDERSYNC_SOURCE_ROOT",
    "FOLDERSYNC_DESTINATION_ROOT",
    "FOLDERSYNC_DESTINATION_FOLDER",
    "FOLDERSYNC_SYNC_INTERVAL",
    "FOLDERSYNC_COPY_DELAY_SECONDS",
    "FOLDERSYNC_LOG_LEVEL",
    "FOLDERSYNC_LOG_FORMAT",
]


# ── File-creation helpers ─────────────────────────────────────────────────────

def make_file(path: Path, content: bytes = b"dummy content") -> Path:
    """Create a file with the given content; create parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def make_files(folder: Path, names: Iterable[str]) -> List[Path]:
    """Create one file per name, each holding its own name as content."""
    return [make_file(folder / name, name.encode()) for name in names]


class ProgressRecorder:
    """Progress callback that keeps every reported snapshot."""

    def __init__(self):
        self.updates: List[SyncStats] = []

    def __call__(self, stats: SyncStats) -> None:
        self.updates.append(stats)

    @property
    def last(self) -> SyncStats:
        return self.updates[-1]


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    setup_logging(log_level="DEBUG", log_format="console", log_file="")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in FOLDERSYNC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def src(tmp_path: Path) -> Path:
    """Empty source directory."""
    d = tmp_path / "source"
    d.mkdir()
    return d


@pytest.fixture
def dst(tmp_path: Path) -> Path:
    """Destination directory path (not created)."""
    return tmp_path / "destination"


@pytest.fixture
def progress() -> ProgressRecorder:
    return ProgressRecorder()


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """Source root holding the default Originals and Pictures folders."""
    root = tmp_path / "library"
    make_files(root / "Originals", ["a.jpg", "b.jpg", ".DS_Store"])
    make_files(root / "Pictures", ["p1.png", "p2.png", "p3.png"])
    return root


@pytest.fixture
def cloud(tmp_path: Path) -> Path:
    """Existing destination root."""
    d = tmp_path / "cloud"
    d.mkdir()
    return d


@pytest.fixture
def sync_config(library: Path, cloud: Path) -> SyncConfig:
    return SyncConfig(
        source_root=str(library),
        destination_root=str(cloud),
        destination_folder="Booth",
        copy_delay_seconds=0
    )
