"""
Snapshot rotation job.

Processes each configured target in turn: mount its volume, optionally take
a new snapshot, then rotate old snapshots according to the target's tier
table. Volumes mounted by the run are unmounted once, after every target
has been processed.

A failure in one target never stops the others; it is recorded in that
target's result and makes the run as a whole unsuccessful.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from snaprotate.catalog import SnapshotCatalog
from snaprotate.errors import MountError, SnaprotateError, StoreError
from snaprotate.retention.engine import RotationEngine, RotationPlan
from snaprotate.store import SnapshotStore, snapshot_path
from snaprotate.utils.config import Config, TargetConfig
from snaprotate.utils.timing import timed_phase, timed_section
from snaprotate.volume import VolumeAccess


def _local_now() -> datetime:
    return datetime.now().astimezone().replace(microsecond=0)


@dataclass
class TargetResult:
    """
    Result of processing one target.

    Attributes:
        name: Target name
        dry_run: Whether mutating commands were only printed
        created: Path of the snapshot taken, if any
        deleted: Snapshots deleted (or that would be, in dry-run mode)
        kept: Number of snapshots kept after rotation
        skipped: True if the target was not fully processed
        duration_seconds: Time taken for the target
        errors: List of error messages
    """

    name: str
    dry_run: bool = False
    created: str | None = None
    deleted: list[str] = field(default_factory=list)
    kept: int = 0
    skipped: bool = False
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "dry_run": self.dry_run,
            "created": self.created,
            "deleted": list(self.deleted),
            "kept": self.kept,
            "skipped": self.skipped,
            "duration_seconds": self.duration_seconds,
            "errors": list(self.errors),
        }


class RotationJob:
    """
    Takes and rotates snapshots for the configured targets.

    Runs strictly sequentially: one target is fully processed before the
    next begins.
    """

    def __init__(
        self,
        config: Config,
        volume: VolumeAccess,
        store: SnapshotStore,
        take: bool = True,
        rotate: bool = True,
        only: Iterable[str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the rotation job.

        Args:
            config: Loaded configuration
            volume: Mount tracker for this run
            store: Snapshot store (carries the dry-run setting)
            take: Whether to take new snapshots
            rotate: Whether to delete old snapshots
            only: Restrict the run to these target names
            clock: Source of the current time (default: local time, whole seconds)
        """
        self._config = config
        self._volume = volume
        self._store = store
        self._take = take
        self._rotate = rotate
        self._only = list(only) if only else None
        self._clock = clock or _local_now
        self.teardown_errors: list[str] = []
        self.results: dict[str, TargetResult] = {}

    @property
    def success(self) -> bool:
        return not self.teardown_errors and all(r.success for r in self.results.values())

    def selected_targets(self) -> list[TargetConfig]:
        """Get the targets to process, in config order."""
        targets = self._config.targets
        if self._only is None:
            return list(targets.values())

        for name in self._only:
            if name not in targets:
                logger.warning(f"No snapshot named {name} in config")
        return [t for name, t in targets.items() if name in self._only]

    def run(self) -> dict[str, TargetResult]:
        """
        Run the job for all selected targets.

        Returns:
            Dictionary mapping target name to TargetResult
        """
        targets = self.selected_targets()
        logger.info(
            f"Running rotation job (dry_run={self._store.dry_run}, take={self._take}, "
            f"rotate={self._rotate}) for {len(targets)} targets"
        )

        try:
            for target in targets:
                self.results[target.name] = self._process(target)
        finally:
            self._release()

        return self.results

    def plan_target(self, target: TargetConfig) -> RotationPlan:
        """
        Compute the rotation plan for a target without deleting anything.

        Raises:
            MountError: If the volume cannot be mounted
            StoreError: If the snapshot directory cannot be listed
        """
        self._volume.ensure_mounted(target.mount_point)
        catalog = SnapshotCatalog(target.snapshot_dir, target.format)
        engine = RotationEngine(target.tier_table())
        for line in engine.table.describe():
            logger.trace(f"[{target.name}] {line}")
        return engine.plan(catalog.list(), self._clock())

    def _process(self, target: TargetConfig) -> TargetResult:
        result = TargetResult(name=target.name, dry_run=self._store.dry_run)

        with timed_section(target.name) as metrics:
            try:
                self._volume.ensure_mounted(target.mount_point)
                if self._take:
                    with timed_phase(metrics, "take"):
                        result.created = str(self._take_snapshot(target))
                if self._rotate:
                    with timed_phase(metrics, "rotate"):
                        self._rotate_snapshots(target, result)
            except MountError as e:
                logger.error(f"Skipping {target.name}: {e}")
                result.errors.append(str(e))
                result.skipped = True
            except StoreError as e:
                logger.error(f"{target.name}: {e}")
                result.errors.append(str(e))
                result.skipped = True

        result.duration_seconds = metrics.elapsed_seconds
        metrics.log("debug")
        logger.info(
            f"Snapshot {target.name}: created={result.created is not None}, "
            f"deleted={len(result.deleted)}, kept={result.kept}, errors={len(result.errors)}"
        )
        return result

    def _take_snapshot(self, target: TargetConfig) -> Path:
        logger.debug(f"Take snapshot of {target.name}")
        path = snapshot_path(target.snapshot_dir, target.format, self._clock())
        print(f"Taking snapshot {path}")
        self._store.create(target.subvolume, path)
        return path

    def _rotate_snapshots(self, target: TargetConfig, result: TargetResult) -> None:
        logger.debug(f"Rotate snapshots for {target.name}")
        plan = self.plan_target(target)
        result.kept = len(plan.to_keep)

        for identifier in plan.to_delete:
            print(f"Dropping snapshot {identifier}")
            try:
                self._store.delete(identifier)
            except StoreError as e:
                logger.error(f"{target.name}: {e}")
                result.errors.append(str(e))
                result.kept += 1
                continue
            result.deleted.append(str(identifier))

    def _release(self) -> None:
        try:
            self._volume.release_all()
        except SnaprotateError as e:
            logger.error(f"Cleanup failed: {e}")
            self.teardown_errors.append(str(e))
