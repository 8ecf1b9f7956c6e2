"""Tests for configuration loading and merging."""

from datetime import timedelta
from pathlib import Path

import pytest

from snaprotate.errors import ConfigError
from snaprotate.utils.config import (
    DEFAULT_CONFIG_PATH,
    SnapshotSettings,
    TargetConfig,
    default_config_path,
    load_config,
    merge_settings,
    parse_config,
)

CONFIG_TOML = """\
mount_point = "/mnt/pool"
format = "%Y-%m-%d_%H:%M:%S"
snapshot_dir = "/mnt/pool/snapshots"

[spacings]
"0s" = "1h"
"1d" = "1d"
"1w" = "1w"

[snapshots.home]
subvolume = "/mnt/pool/home"
snapshot_dir = "/mnt/pool/snapshots/home"

[snapshots.root]
subvolume = "/mnt/pool/root"

[snapshots.root.spacings]
"0s" = "1d"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "btrfs-snapshot.toml"
    path.write_text(CONFIG_TOML)
    return path


class TestMergeSettings:
    """Tests for merge_settings()."""

    def test_override_wins(self):
        defaults = SnapshotSettings(
            mount_point=Path("/mnt/a"), format="%Y", subvolume=Path("/a"), snapshot_dir=Path("/s")
        )
        override = SnapshotSettings(mount_point=Path("/mnt/b"))

        target = merge_settings(defaults, override, "t")

        assert target == TargetConfig(
            name="t", mount_point=Path("/mnt/b"), format="%Y", subvolume=Path("/a"), snapshot_dir=Path("/s")
        )

    def test_missing_field_names_field_and_target(self):
        defaults = SnapshotSettings(mount_point=Path("/mnt/a"), format="%Y")
        override = SnapshotSettings(snapshot_dir=Path("/s"))

        with pytest.raises(ConfigError) as exc_info:
            merge_settings(defaults, override, "home")

        error = exc_info.value
        assert str(error) == "Snapshot home has no `subvolume` config"
        assert error.target == "home"
        assert error.field == "subvolume"

    def test_spacings_default_to_empty(self):
        defaults = SnapshotSettings(
            mount_point=Path("/m"), format="%Y", subvolume=Path("/a"), snapshot_dir=Path("/s")
        )

        target = merge_settings(defaults, SnapshotSettings(), "t")

        assert target.spacings == {}
        assert target.tier_table().tier_count() == 0

    def test_override_spacings_replace_defaults(self):
        defaults = SnapshotSettings(
            mount_point=Path("/m"),
            format="%Y",
            subvolume=Path("/a"),
            snapshot_dir=Path("/s"),
            spacings={timedelta(0): timedelta(hours=1), timedelta(days=1): timedelta(days=1)},
        )
        override = SnapshotSettings(spacings={timedelta(0): timedelta(days=1)})

        target = merge_settings(defaults, override, "t")

        assert target.spacings == {timedelta(0): timedelta(days=1)}


class TestParseConfig:
    """Tests for parse_config()."""

    def test_targets_keep_file_order(self):
        data = {
            "mount_point": "/m",
            "format": "%Y",
            "subvolume": "/a",
            "snapshot_dir": "/s",
            "snapshots": {"zeta": {}, "alpha": {}},
        }

        assert list(parse_config(data).targets) == ["zeta", "alpha"]

    def test_no_targets(self):
        assert parse_config({"format": "%Y"}).targets == {}

    def test_invalid_duration(self):
        data = {"spacings": {"1 fortnight": "1d"}}

        with pytest.raises(ConfigError, match="Invalid spacing"):
            parse_config(data)

    def test_spacings_must_be_table(self):
        with pytest.raises(ConfigError, match="must be a table"):
            parse_config({"spacings": "1d"})

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="non-empty string"):
            parse_config({"mount_point": 5})

    def test_snapshot_must_be_table(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"snapshots": {"home": "yes"}})

        assert exc_info.value.target == "home"

    def test_unknown_option_warns(self, log_messages):
        parse_config({"mountpoint": "/m"})

        assert any("Ignoring unknown option `mountpoint`" in m for m in log_messages)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_loads_and_merges(self, config_file):
        config = load_config(config_file)

        home = config.targets["home"]
        assert home.mount_point == Path("/mnt/pool")
        assert home.snapshot_dir == Path("/mnt/pool/snapshots/home")
        assert home.format == "%Y-%m-%d_%H:%M:%S"
        assert home.spacings == {
            timedelta(0): timedelta(hours=1),
            timedelta(days=1): timedelta(days=1),
            timedelta(weeks=1): timedelta(weeks=1),
        }

        root = config.targets["root"]
        assert root.snapshot_dir == Path("/mnt/pool/snapshots")
        assert root.spacings == {timedelta(0): timedelta(days=1)}

    def test_missing_field_in_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('format = "%Y"\n[snapshots.home]\nsubvolume = "/a"\n')

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert "Snapshot home has no `mount_point` config" in str(exc_info.value)
        assert exc_info.value.target == "home"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Failed to read config"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("mount_point = \n")

        with pytest.raises(ConfigError, match="Failed to parse config"):
            load_config(path)

    def test_env_var_selects_default_path(self, config_file, monkeypatch):
        monkeypatch.setenv("SNAPROTATE_CONFIG", str(config_file))

        assert default_config_path() == config_file
        assert set(load_config().targets) == {"home", "root"}

    def test_system_default_path(self, monkeypatch):
        monkeypatch.delenv("SNAPROTATE_CONFIG", raising=False)

        assert default_config_path() == DEFAULT_CONFIG_PATH == Path("/etc/btrfs-snapshot.toml")
