"""
Configuration for snaprotate.

The configuration is a TOML document. Top-level keys form the defaults;
each ``[snapshots.<name>]`` table configures one target and may override
any default:

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

After merging, every target must have ``mount_point``, ``format``,
``subvolume`` and ``snapshot_dir``. ``spacings`` defaults to no rules, which
keeps every snapshot.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from loguru import logger

from snaprotate.errors import ConfigError
from snaprotate.retention.policy import RetentionTierTable
from snaprotate.utils.durations import parse_duration

DEFAULT_CONFIG_PATH = Path("/etc/btrfs-snapshot.toml")

REQUIRED_FIELDS = ("mount_point", "format", "subvolume", "snapshot_dir")
_PATH_FIELDS = ("mount_point", "subvolume", "snapshot_dir")
_KNOWN_KEYS = set(REQUIRED_FIELDS) | {"spacings"}


def default_config_path() -> Path:
    """Get the config path from SNAPROTATE_CONFIG or the system default."""
    path = os.getenv("SNAPROTATE_CONFIG")
    if path:
        return Path(path).expanduser()
    return DEFAULT_CONFIG_PATH


@dataclass(frozen=True)
class SnapshotSettings:
    """
    Settings at the defaults or override level.

    Every field is optional here; ``merge_settings`` resolves them.
    """

    mount_point: Path | None = None
    format: str | None = None
    subvolume: Path | None = None
    snapshot_dir: Path | None = None
    spacings: dict[timedelta, timedelta] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], where: str) -> SnapshotSettings:
        """
        Build settings from a parsed TOML table.

        Args:
            data: Table contents
            where: Description of the table for error messages

        Raises:
            ConfigError: If a value has the wrong type or a duration is invalid
        """
        for key in data:
            if key not in _KNOWN_KEYS:
                logger.warning(f"Ignoring unknown option `{key}` in {where}")

        values: dict[str, Any] = {}
        for key in REQUIRED_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Option `{key}` in {where} must be a non-empty string", field=key)
            values[key] = Path(value) if key in _PATH_FIELDS else value

        if "spacings" in data:
            values["spacings"] = _parse_spacings(data["spacings"], where)

        return cls(**values)


@dataclass(frozen=True)
class TargetConfig:
    """A fully resolved snapshot target."""

    name: str
    mount_point: Path
    format: str
    subvolume: Path
    snapshot_dir: Path
    spacings: dict[timedelta, timedelta] = field(default_factory=dict)

    def tier_table(self) -> RetentionTierTable:
        return RetentionTierTable.from_mapping(self.spacings)


@dataclass(frozen=True)
class Config:
    """Parsed configuration: defaults plus resolved targets in file order."""

    defaults: SnapshotSettings
    targets: dict[str, TargetConfig] = field(default_factory=dict)


def _parse_spacings(raw: Any, where: str) -> dict[timedelta, timedelta]:
    if not isinstance(raw, dict):
        raise ConfigError(f"Option `spacings` in {where} must be a table of durations", field="spacings")

    spacings: dict[timedelta, timedelta] = {}
    for age_text, spacing_text in raw.items():
        try:
            age = parse_duration(age_text)
            spacing = parse_duration(spacing_text)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid spacing `{age_text} = {spacing_text}` in {where}: {e}", field="spacings"
            ) from e
        if age in spacings:
            logger.warning(f"Spacing for age `{age_text}` in {where} overrides an earlier entry")
        spacings[age] = spacing
    return spacings


def merge_settings(defaults: SnapshotSettings, override: SnapshotSettings, name: str) -> TargetConfig:
    """
    Fill a target's missing settings from the defaults.

    Args:
        defaults: Top-level settings
        override: The target's own settings
        name: Target name

    Returns:
        Resolved TargetConfig

    Raises:
        ConfigError: If a required field is missing after merging
    """
    merged: dict[str, Any] = {}
    for key in REQUIRED_FIELDS:
        value = getattr(override, key)
        if value is None:
            value = getattr(defaults, key)
        if value is None:
            raise ConfigError(f"Snapshot {name} has no `{key}` config", target=name, field=key)
        merged[key] = value

    spacings = override.spacings if override.spacings is not None else defaults.spacings
    return TargetConfig(name=name, spacings=dict(spacings or {}), **merged)


def parse_config(data: dict[str, Any]) -> Config:
    """
    Build a Config from a parsed TOML document.

    Raises:
        ConfigError: If the document is invalid
    """
    data = dict(data)
    raw_targets = data.pop("snapshots", {})
    if not isinstance(raw_targets, dict):
        raise ConfigError("`snapshots` must be a table of snapshot configs")

    defaults = SnapshotSettings.from_dict(data, "defaults")

    targets = {}
    for name, raw in raw_targets.items():
        if not isinstance(raw, dict):
            raise ConfigError(f"Snapshot {name} must be a table", target=name)
        override = SnapshotSettings.from_dict(raw, f"snapshot {name}")
        targets[name] = merge_settings(defaults, override, name)

    return Config(defaults=defaults, targets=targets)


def load_config(path: Path | str | None = None) -> Config:
    """
    Load and validate the configuration file.

    Args:
        path: Config file (default: SNAPROTATE_CONFIG or /etc/btrfs-snapshot.toml)

    Returns:
        Parsed Config

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    path = Path(path) if path else default_config_path()
    logger.debug(f"Loading config {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config from {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config {path}: {e}") from e

    try:
        config = parse_config(data)
    except ConfigError as e:
        raise ConfigError(f"Invalid config {path}: {e}", target=e.target, field=e.field) from e

    logger.trace(f"{config}")
    return config
