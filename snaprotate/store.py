"""
Snapshot store backed by ``btrfs subvolume``.

Snapshots are created read-only. In dry-run mode the commands are printed
instead of executed.
"""

from __future__ import annotations

from collections.abc import Hashable
from datetime import datetime
from pathlib import Path

from loguru import logger

from snaprotate.commands import CommandRunner
from snaprotate.errors import CommandError, StoreError


def snapshot_path(snapshot_dir: Path, name_format: str, now: datetime | None = None) -> Path:
    """
    Build the path for a new snapshot.

    Args:
        snapshot_dir: Directory holding the snapshots
        name_format: strftime-style format for the snapshot name
        now: Time of the snapshot (default: current local time)

    Returns:
        Path of the new snapshot
    """
    now = now or datetime.now().astimezone()
    return Path(snapshot_dir) / now.strftime(name_format)


class SnapshotStore:
    """Creates and deletes btrfs snapshots."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    @property
    def dry_run(self) -> bool:
        return self._runner.dry_run

    def create(self, subvolume: Path, destination: Path) -> None:
        """
        Take a read-only snapshot of a subvolume.

        Raises:
            StoreError: If the btrfs command fails
        """
        logger.debug(f"Snapshotting {subvolume} to {destination}")
        try:
            self._runner.maybe_run(
                ["btrfs", "subvolume", "snapshot", "-r", str(subvolume), str(destination)]
            )
        except CommandError as e:
            raise StoreError("create", str(destination), e) from e

    def delete(self, identifier: Hashable) -> None:
        """
        Delete a snapshot.

        Deleting a snapshot that no longer exists fails like any other
        btrfs error.

        Raises:
            StoreError: If the btrfs command fails
        """
        try:
            self._runner.maybe_run(["btrfs", "subvolume", "delete", str(identifier)])
        except CommandError as e:
            raise StoreError("delete", str(identifier), e) from e
