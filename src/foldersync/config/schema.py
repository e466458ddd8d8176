"""Configuration schema definitions for folder pairs and schedules."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.models import FolderPair, check_disjoint_destinations


class SyncInterval(str, Enum):
    """How often a sync runs automatically."""
    NEVER = "never"
    ON_NEW_FILES = "on_new_files"
    SIX_HOURS = "six_hours"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def seconds(self) -> int:
        """Interval length; 0 disables scheduling and -1 selects polling."""
        return _INTERVAL_SECONDS[self]

    @property
    def is_periodic(self) -> bool:
        return self.seconds > 0


_INTERVAL_SECONDS = {
    SyncInterval.NEVER: 0,
    SyncInterval.ON_NEW_FILES: -1,
    SyncInterval.SIX_HOURS: 6 * 60 * 60,
    SyncInterval.DAILY: 24 * 60 * 60,
    SyncInterval.WEEKLY: 7 * 24 * 60 * 60,
    SyncInterval.MONTHLY: 30 * 24 * 60 * 60,
}


class FolderPairConfig(BaseModel):
    """Configuration for a single mirrored folder."""

    name: str = Field(..., description="Human-readable name for the pair")
    source: str = Field(..., description="Source folder, absolute or relative to source_root")
    destination_subpath: str = Field(..., description="Subfolder below the destination folder")
    is_active: bool = Field(default=True, description="Whether this pair takes part in syncs")

    @field_validator("name", "source", "destination_subpath")
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Value must not be blank")
        return v

    def to_folder_pair(self) -> FolderPair:
        return FolderPair(
            source_path=self.source,
            destination_subpath=self.destination_subpath,
            name=self.name
        )


class ScheduleConfig(BaseModel):
    """Configuration for automatic syncs."""

    interval: SyncInterval = Field(default=SyncInterval.NEVER, description="Automatic sync interval")
    poll_interval_seconds: float = Field(default=3.0, description="Poll period for on_new_files")
    late_start_delay_seconds: float = Field(default=5.0, description="Delay for a sync that is already overdue")

    @field_validator("poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v):
        if v <= 0:
            raise ValueError("Poll interval must be positive")
        return v

    @field_validator("late_start_delay_seconds")
    @classmethod
    def validate_late_start(cls, v):
        if v < 0:
            raise ValueError("Late start delay must not be negative")
        return v


def _default_pairs() -> List[FolderPairConfig]:
    return [
        FolderPairConfig(name="Originals", source="Originals", destination_subpath="Originals"),
        FolderPairConfig(name="Pictures", source="Pictures", destination_subpath="Pictures"),
    ]


class SyncConfig(BaseModel):
    """Root configuration for the folder sync."""

    version: str = Field(default="1.0.0", description="Configuration version")
    created_at: datetime = Field(default_factory=datetime.now, description="When config was created")
    updated_at: datetime = Field(default_factory=datetime.now, description="When config was last updated")

    source_root: Optional[str] = Field(None, description="Base for relative pair sources")
    destination_root: str = Field(..., description="Directory that holds the mirrored tree")
    destination_folder: str = Field(default="FolderSync", description="Folder created inside destination_root")

    pairs: List[FolderPairConfig] = Field(default_factory=_default_pairs, description="Mirrored folders")
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig, description="Automatic sync schedule")

    copy_delay_seconds: float = Field(default=0.05, description="Pause after each copied file")
    history_limit: int = Field(default=50, description="Maximum history records kept")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (json, console)")

    @field_validator("pairs")
    @classmethod
    def validate_pairs(cls, v):
        names = [pair.name for pair in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate folder pair names: {names}")
        check_disjoint_destinations(pair.destination_subpath for pair in v)
        return v

    @field_validator("copy_delay_seconds")
    @classmethod
    def validate_copy_delay(cls, v):
        if v < 0:
            raise ValueError("Copy delay must not be negative")
        return v

    @field_validator("history_limit")
    @classmethod
    def validate_history_limit(cls, v):
        if v < 1:
            raise ValueError("History limit must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v.lower() not in ("json", "console"):
            raise ValueError("Log format must be 'json' or 'console'")
        return v.lower()

    def get_active_pairs(self) -> List[FolderPairConfig]:
        """Get all active folder pairs."""
        return [pair for pair in self.pairs if pair.is_active]

    def get_folder_pairs(self) -> List[FolderPair]:
        """Active pairs as core ``FolderPair`` values."""
        return [pair.to_folder_pair() for pair in self.get_active_pairs()]

    def get_pair(self, name: str) -> Optional[FolderPairConfig]:
        for pair in self.pairs:
            if pair.name == name:
                return pair
        return None


PHOTO_BOOTH_CONFIG_EXAMPLE = SyncConfig(
    source_root="~/Pictures/Photo Booth Library",
    destination_root="~/Library/Mobile Documents/com~apple~CloudDocs",
    destination_folder="PhotoBooth",
    schedule=ScheduleConfig(interval=SyncInterval.DAILY),
)
