"""
Snapshot catalog.

Lists the snapshots in a snapshot directory and parses the timestamp
embedded in each name. Names that do not match the configured format are
skipped with a warning; they are never deleted.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from loguru import logger

from snaprotate.errors import ParseError, StoreError
from snaprotate.retention.engine import SnapshotEntry


def parse_snapshot_time(name: str, name_format: str) -> datetime:
    """
    Parse the timestamp from a snapshot name.

    Names without a UTC offset are interpreted in local time.

    Args:
        name: Directory entry name
        name_format: strftime-style format the name was created with

    Returns:
        Timezone-aware timestamp

    Raises:
        ParseError: If the name does not match the format
    """
    try:
        parsed = datetime.strptime(name, name_format)
    except ValueError as e:
        raise ParseError(name, name_format) from e

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


class SnapshotCatalog:
    """
    Catalog of snapshots stored in a single directory.

    Every call to ``list`` re-reads the directory.
    """

    def __init__(self, snapshot_dir: Path, name_format: str):
        self.snapshot_dir = Path(snapshot_dir)
        self.name_format = name_format

    def list(self) -> list[SnapshotEntry]:
        """
        List the snapshots with parseable names.

        Returns:
            Entries with timestamps, sorted by name, tiers unassigned

        Raises:
            StoreError: If the snapshot directory cannot be read
        """
        try:
            items = sorted(self.snapshot_dir.iterdir())
        except OSError as e:
            raise StoreError("list", str(self.snapshot_dir), e) from e

        entries = []
        for item in items:
            try:
                timestamp = parse_snapshot_time(item.name, self.name_format)
            except ParseError:
                logger.warning(
                    f"Ignoring snapshot {item} because name does not match format `{self.name_format}`"
                )
                continue
            entries.append(SnapshotEntry(timestamp=timestamp, identifier=item))

        logger.debug(f"Found {len(entries)} snapshots in {self.snapshot_dir}")
        return entries
