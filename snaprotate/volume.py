"""
Volume mounting.

Makes sure the btrfs volume holding a target's snapshots is mounted, and
remembers which mounts this run performed so they, and only they, can be
undone at the end of the run.
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from snaprotate.commands import CommandRunner
from snaprotate.errors import CommandError, MountError, SnaprotateError

_MOUNT_LINE_RE = re.compile(r"^.+? on (.+?) type", re.MULTILINE)


class VolumeAccess:
    """
    Tracks mounts owned by a single run.

    Create one per run, pass it to everything that needs a mounted volume,
    and call ``release_all`` once when the run is over.
    """

    def __init__(self, runner: CommandRunner):
        self._runner = runner
        self._owned: dict[Path, None] = {}

    @property
    def owned_mounts(self) -> tuple[Path, ...]:
        return tuple(self._owned)

    def is_mounted(self, mount_point: Path) -> bool:
        """
        Check whether a mount point appears in the system mount table.

        Raises:
            MountError: If the mount table cannot be read
        """
        mount_point = Path(mount_point)
        try:
            output = self._runner.run(["mount"])
        except CommandError as e:
            raise MountError(str(mount_point), "checking mounts for", e) from e

        for mounted in _MOUNT_LINE_RE.findall(output):
            if Path(mounted) == mount_point:
                return True
        return False

    def ensure_mounted(self, mount_point: Path) -> None:
        """
        Mount a volume if it is not mounted yet.

        Mounts found already in place are left alone and not recorded as
        owned.

        Raises:
            MountError: If checking or mounting fails
        """
        mount_point = Path(mount_point)
        if mount_point in self._owned:
            return

        if self.is_mounted(mount_point):
            logger.trace(f"Already mounted {mount_point}")
            return

        logger.debug(f"Mounting {mount_point}")
        try:
            self._runner.run(["mount", str(mount_point)])
        except CommandError as e:
            raise MountError(str(mount_point), "mounting", e) from e
        self._owned[mount_point] = None

    def release_all(self) -> None:
        """
        Unmount every mount point this run mounted.

        All unmounts are attempted even if some fail.

        Raises:
            MountError: Listing every mount point that failed to unmount
        """
        owned, self._owned = list(self._owned), {}
        failures = []
        for mount_point in owned:
            logger.debug(f"Unmounting {mount_point}")
            try:
                self._runner.run(["umount", str(mount_point)])
            except CommandError as e:
                logger.error(f"Unmounting {mount_point} failed: {e}")
                failures.append((mount_point, e))

        if len(failures) == 1:
            mount_point, cause = failures[0]
            raise MountError(str(mount_point), "unmounting", cause)
        if failures:
            points = ", ".join(str(p) for p, _ in failures)
            causes = "; ".join(str(c) for _, c in failures)
            raise MountError(points, "unmounting", SnaprotateError(causes))
