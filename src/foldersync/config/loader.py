"""Configuration loader for JSON/YAML files and environment variables."""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from datetime import datetime

from pydantic import ValidationError

from .schema import SyncConfig, SyncInterval
from ..utils.logging import get_logger, log_execution_time


CONFIG_FILE_ENV = "FOLDERSYNC_CONFIG_FILE"

DEFAULT_CONFIG_FILES = [
    './config/foldersync.yaml',
    './config/foldersync.yml',
    './config/foldersync.json',
    './foldersync.yaml',
    './foldersync.yml',
    './foldersync.json'
]


class ConfigurationError(Exception):
    """Raised when configuration loading fails."""
    pass


class ConfigLoader:
    """Loads and validates configuration from various sources."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    @log_execution_time
    def load_from_file(self, file_path: Union[str, Path]) -> SyncConfig:
        """Load configuration from JSON or YAML file.

        Args:
            file_path: Path to configuration file

        Returns:
            Validated SyncConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        self.logger.info("Loading configuration from file", file_path=str(file_path))

        suffix = file_path.suffix.lower()
        if suffix not in ('.yaml', '.yml', '.json'):
            raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if suffix == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {file_path}")

        config = self._build(data)

        self.logger.info(
            "Configuration loaded successfully",
            pairs_count=len(config.pairs),
            interval=config.schedule.interval.value
        )

        return config

    def load_from_dict(self, data: Dict[str, Any]) -> SyncConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration data as dictionary

        Returns:
            Validated SyncConfig object
        """
        config = self._build(dict(data))

        self.logger.info(
            "Configuration loaded from dictionary",
            pairs_count=len(config.pairs)
        )

        return config

    @log_execution_time
    def save_to_file(self, config: SyncConfig, file_path: Union[str, Path], format: str = 'yaml'):
        """Save configuration to file.

        Args:
            config: Configuration to save
            file_path: Output file path
            format: Output format ('yaml' or 'json')
        """
        if format.lower() not in ('yaml', 'json'):
            raise ConfigurationError(f"Unsupported format: {format}")

        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Enums and datetimes become plain strings in JSON mode
        data = config.model_dump(mode='json')
        data['updated_at'] = datetime.now().isoformat()

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                if format.lower() == 'yaml':
                    yaml.safe_dump(data, f, default_flow_style=False, indent=2, allow_unicode=True, sort_keys=False)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

        self.logger.info("Configuration saved successfully", file_path=str(file_path))

    def create_default_config(self) -> SyncConfig:
        """Create a default configuration.

        Sources are the Photo Booth library folders of the current user and
        the destination is the iCloud Drive folder; both can be overridden
        through environment variables.
        """
        data = {
            "source_root": "~/Pictures/Photo Booth Library",
            "destination_root": "~/Library/Mobile Documents/com~apple~CloudDocs",
        }
        config = self._build(data)

        self.logger.info("Created default configuration")
        return config

    def _build(self, data: Dict[str, Any]) -> SyncConfig:
        data = self._apply_env_overrides(data)
        try:
            return SyncConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration data.

        Environment variables use the format: FOLDERSYNC_<KEY>
        For example: FOLDERSYNC_DESTINATION_ROOT, FOLDERSYNC_LOG_LEVEL
        """
        env_overrides: Dict[str, Any] = {}

        for key in ('source_root', 'destination_root', 'destination_folder', 'log_level', 'log_format'):
            value = os.getenv(f'FOLDERSYNC_{key.upper()}')
            if value:
                env_overrides[key] = value

        if os.getenv('FOLDERSYNC_COPY_DELAY_SECONDS'):
            try:
                env_overrides['copy_delay_seconds'] = float(os.getenv('FOLDERSYNC_COPY_DELAY_SECONDS'))
            except ValueError:
                self.logger.warning("Invalid FOLDERSYNC_COPY_DELAY_SECONDS value, ignoring")

        interval = os.getenv('FOLDERSYNC_SYNC_INTERVAL')
        if interval:
            try:
                schedule = dict(data.get('schedule') or {})
                schedule['interval'] = SyncInterval(interval.lower()).value
                env_overrides['schedule'] = schedule
            except ValueError:
                self.logger.warning("Invalid FOLDERSYNC_SYNC_INTERVAL value, ignoring", value=interval)

        if env_overrides:
            self.logger.info("Applied environment variable overrides", overrides=list(env_overrides.keys()))
            data = {**data, **env_overrides}

        return data

    def validate_config(self, config: SyncConfig) -> List[str]:
        """Validate configuration and return list of warnings/issues.

        Args:
            config: Configuration to validate

        Returns:
            List of validation warnings
        """
        warnings = []

        if not config.get_active_pairs():
            warnings.append("No active folder pairs configured")

        source_root = Path(config.source_root).expanduser() if config.source_root else None
        for pair in config.get_active_pairs():
            source = Path(pair.source).expanduser()
            if not source.is_absolute():
                if source_root is None:
                    warnings.append(f"Pair '{pair.name}' has a relative source but no source_root")
                    continue
                source = source_root / source
            if not source.is_dir():
                warnings.append(f"Source folder for '{pair.name}' does not exist: {source}")

        if not Path(config.destination_root).expanduser().is_dir():
            warnings.append(f"Destination root does not exist: {config.destination_root}")

        if config.copy_delay_seconds > 5:
            warnings.append(f"Very long copy delay: {config.copy_delay_seconds}s")

        if warnings:
            self.logger.warning("Configuration validation warnings", warnings=warnings)
        else:
            self.logger.info("Configuration validation passed")

        return warnings


def load_config_from_env(config_file: Optional[str] = None) -> SyncConfig:
    """Load configuration from environment variables and default files.

    Looks for configuration files in this order:
    1. ``config_file`` argument
    2. FOLDERSYNC_CONFIG_FILE environment variable
    3. ./config/foldersync.{yaml,yml,json}
    4. ./foldersync.{yaml,yml,json}

    If no file is found, creates a default configuration.
    """
    loader = ConfigLoader()
    logger = get_logger("load_config_from_env")

    explicit = config_file or os.getenv(CONFIG_FILE_ENV)
    if explicit:
        if os.path.exists(explicit):
            return loader.load_from_file(explicit)
        logger.warning("Specified config file not found", file=explicit)

    for file_path in DEFAULT_CONFIG_FILES:
        if os.path.exists(file_path):
            logger.info("Found configuration file", file=file_path)
            return loader.load_from_file(file_path)

    logger.info("No configuration file found, creating default configuration")
    return loader.create_default_config()
