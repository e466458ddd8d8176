"""Tests for the configuration schema, loader and settings."""

import json

import pytest
import yaml
from pydantic import ValidationError

from foldersync.config import (
    PHOTO_BOOTH_CONFIG_EXAMPLE,
    ConfigLoader,
    ConfigurationError,
    FolderPairConfig,
    ScheduleConfig,
    SyncConfig,
    SyncInterval,
    get_settings,
    load_config_from_env,
)
from foldersync.core import FolderPair, check_disjoint_destinations


SAMPLE_CONFIG = {
    "source_root": "/Volumes/Library",
    "destination_root": "/Volumes/Cloud",
    "destination_folder": "Mirror",
    "pairs": [
        {"name": "Raw", "source": "Raw", "destination_subpath": "raw"},
        {"name": "Edits", "source": "/Users/me/Edits", "destination_subpath": "edits", "is_active": False},
    ],
    "schedule": {"interval": "weekly"},
    "copy_delay_seconds": 0.1,
    "log_level": "debug",
}


class TestSyncInterval:

    def test_seconds(self):
        assert SyncInterval.NEVER.seconds == 0
        assert SyncInterval.ON_NEW_FILES.seconds == -1
        assert SyncInterval.SIX_HOURS.seconds == 21600
        assert SyncInterval.DAILY.seconds == 86400
        assert SyncInterval.WEEKLY.seconds == 604800
        assert SyncInterval.MONTHLY.seconds == 2592000

    def test_only_timed_intervals_are_periodic(self):
        periodic = {interval for interval in SyncInterval if interval.is_periodic}
        assert periodic == {
            SyncInterval.SIX_HOURS,
            SyncInterval.DAILY,
            SyncInterval.WEEKLY,
            SyncInterval.MONTHLY,
        }


class TestDestinationSubpaths:

    def test_disjoint_paths_pass(self):
        check_disjoint_destinations(["Originals", "Pictures", "Albums/2024"])

    @pytest.mark.parametrize("subpaths", [
        ["Originals", "Originals"],
        ["Originals", "Originals/Thumbs"],
        ["Albums/2024", "Albums"],
        ["./Pictures", "Pictures"],
    ])
    def test_overlap_is_rejected(self, subpaths):
        with pytest.raises(ValueError):
            check_disjoint_destinations(subpaths)

    @pytest.mark.parametrize("subpath", ["/abs/path", "../outside", ""])
    def test_escaping_path_is_rejected(self, subpath):
        with pytest.raises(ValueError):
            check_disjoint_destinations([subpath])

    def test_sibling_prefix_is_not_overlap(self):
        check_disjoint_destinations(["Pictures", "Pictures2"])


class TestSyncConfigSchema:

    def test_defaults(self):
        config = SyncConfig(destination_root="/tmp/cloud")

        assert config.destination_folder == "FolderSync"
        assert [pair.name for pair in config.pairs] == ["Originals", "Pictures"]
        assert config.schedule.interval == SyncInterval.NEVER
        assert config.schedule.poll_interval_seconds == 3.0
        assert config.schedule.late_start_delay_seconds == 5.0
        assert config.copy_delay_seconds == 0.05
        assert config.history_limit == 50

    def test_folder_pairs_only_include_active(self):
        config = SyncConfig(**SAMPLE_CONFIG)

        assert config.get_folder_pairs() == [
            FolderPair(source_path="Raw", destination_subpath="raw", name="Raw")
        ]
        assert config.get_pair("Edits").is_active is False
        assert config.get_pair("Missing") is None

    def test_log_level_is_normalized(self):
        assert SyncConfig(**SAMPLE_CONFIG).log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("log_level", "LOUD"),
        ("log_format", "xml"),
        ("copy_delay_seconds", -0.5),
        ("history_limit", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            SyncConfig(destination_root="/tmp/cloud", **{field: value})

    def test_duplicate_pair_names(self):
        pairs = [
            FolderPairConfig(name="A", source="x", destination_subpath="x"),
            FolderPairConfig(name="A", source="y", destination_subpath="y"),
        ]
        with pytest.raises(ValidationError):
            SyncConfig(destination_root="/tmp/cloud", pairs=pairs)

    def test_nested_destinations(self):
        pairs = [
            FolderPairConfig(name="A", source="x", destination_subpath="x"),
            FolderPairConfig(name="B", source="y", destination_subpath="x/y"),
        ]
        with pytest.raises(ValidationError):
            SyncConfig(destination_root="/tmp/cloud", pairs=pairs)

    def test_blank_pair_fields(self):
        with pytest.raises(ValidationError):
            FolderPairConfig(name=" ", source="x", destination_subpath="x")

    def test_schedule_validation(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(poll_interval_seconds=0)
        with pytest.raises(ValidationError):
            ScheduleConfig(late_start_delay_seconds=-1)

    def test_photo_booth_example(self):
        assert PHOTO_BOOTH_CONFIG_EXAMPLE.schedule.interval == SyncInterval.DAILY
        assert PHOTO_BOOTH_CONFIG_EXAMPLE.destination_folder == "PhotoBooth"


class TestConfigLoader:

    @pytest.fixture
    def loader(self) -> ConfigLoader:
        return ConfigLoader()

    def test_load_yaml(self, loader, tmp_path):
        path = tmp_path / "foldersync.yaml"
        path.write_text(yaml.safe_dump(SAMPLE_CONFIG), encoding="utf-8")

        config = loader.load_from_file(path)

        assert config.destination_folder == "Mirror"
        assert config.schedule.interval == SyncInterval.WEEKLY
        assert len(config.pairs) == 2

    def test_load_json(self, loader, tmp_path):
        path = tmp_path / "foldersync.json"
        path.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")

        config = loader.load_from_file(path)

        assert config.copy_delay_seconds == 0.1

    def test_save_and_load_yaml(self, loader, tmp_path):
        path = tmp_path / "out" / "saved.yaml"
        original = SyncConfig(**SAMPLE_CONFIG)

        loader.save_to_file(original, path)
        loaded = loader.load_from_file(path)

        assert loaded.pairs == original.pairs
        assert loaded.schedule == original.schedule
        assert loaded.destination_root == original.destination_root

    def test_save_json_is_plain_data(self, loader, tmp_path):
        path = tmp_path / "saved.json"

        loader.save_to_file(SyncConfig(**SAMPLE_CONFIG), path, format="json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["schedule"]["interval"] == "weekly"

    def test_save_unknown_format(self, loader, tmp_path):
        with pytest.raises(ConfigurationError):
            loader.save_to_file(SyncConfig(**SAMPLE_CONFIG), tmp_path / "c.toml", format="toml")

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            loader.load_from_file(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, loader, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[sync]", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            loader.load_from_file(path)

    def test_invalid_yaml(self, loader, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("pairs: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="YAML"):
            loader.load_from_file(path)

    def test_invalid_json(self, loader, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="JSON"):
            loader.load_from_file(path)

    def test_non_mapping_root(self, loader, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            loader.load_from_file(path)

    def test_schema_errors_become_configuration_errors(self, loader):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            loader.load_from_dict({"copy_delay_seconds": 1})

    def test_env_overrides(self, loader, monkeypatch):
        monkeypatch.setenv("FOLDERSYNC_DESTINATION_ROOT", "/env/cloud")
        monkeypatch.setenv("FOLDERSYNC_COPY_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("FOLDERSYNC_SYNC_INTERVAL", "DAILY")
        monkeypatch.setenv("FOLDERSYNC_LOG_LEVEL", "warning")

        config = loader.load_from_dict(SAMPLE_CONFIG)

        assert config.destination_root == "/env/cloud"
        assert config.copy_delay_seconds == 0.5
        assert config.schedule.interval == SyncInterval.DAILY
        assert config.log_level == "WARNING"
        assert config.destination_folder == "Mirror"

    def test_invalid_env_overrides_are_ignored(self, loader, monkeypatch):
        monkeypatch.setenv("FOLDERSYNC_COPY_DELAY_SECONDS", "fast")
        monkeypatch.setenv("FOLDERSYNC_SYNC_INTERVAL", "hourly")

        config = loader.load_from_dict(SAMPLE_CONFIG)

        assert config.copy_delay_seconds == 0.1
        assert config.schedule.interval == SyncInterval.WEEKLY

    def test_default_config(self, loader):
        config = loader.create_default_config()

        assert config.source_root.endswith("Photo Booth Library")
        assert config.schedule.interval == SyncInterval.NEVER

    def test_validate_config_warnings(self, loader, tmp_path):
        config = SyncConfig(
            destination_root=str(tmp_path / "missing_cloud"),
            pairs=[FolderPairConfig(name="Rel", source="relative", destination_subpath="rel")],
            copy_delay_seconds=10
        )

        warnings = loader.validate_config(config)

        assert any("relative source" in w for w in warnings)
        assert any("Destination root" in w for w in warnings)
        assert any("copy delay" in w for w in warnings)

    def test_validate_config_passes(self, loader, sync_config):
        assert loader.validate_config(sync_config) == []


class TestLoadConfigFromEnv:

    def test_explicit_file_wins(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        explicit = tmp_path / "mine.json"
        explicit.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")
        (tmp_path / "foldersync.yaml").write_text(
            yaml.safe_dump({"destination_root": "/other"}), encoding="utf-8"
        )

        assert load_config_from_env(str(explicit)).destination_folder == "Mirror"

    def test_env_file_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text(yaml.safe_dump(SAMPLE_CONFIG), encoding="utf-8")
        monkeypatch.setenv("FOLDERSYNC_CONFIG_FILE", str(path))

        assert load_config_from_env().destination_root == "/Volumes/Cloud"

    def test_searches_default_locations(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "foldersync.yml").write_text(
            yaml.safe_dump({"destination_root": "/found"}), encoding="utf-8"
        )

        assert load_config_from_env().destination_root == "/found"

    def test_falls_back_to_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_config_from_env(str(tmp_path / "absent.yaml"))

        assert config.destination_root.endswith("CloudDocs")


class TestSettings:

    def test_environment_is_read(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("SYNC_HISTORY_FILE", "/var/lib/foldersync/history.json")

        settings = get_settings()

        assert settings.logging.level == "DEBUG"
        assert settings.sync.history_file == "/var/lib/foldersync/history.json"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
