"""Synthetic snapshot entries anchored at a fixed reference time."""

from datetime import datetime, timedelta, timezone

from snaprotate.retention.engine import SnapshotEntry

NOW = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)
SNAPSHOT_FORMAT = "%Y-%m-%dT%H%M%S%z"

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
WEEK = timedelta(days=7)


def entry_at(age: timedelta, identifier=None) -> SnapshotEntry:
    """Create an entry whose age relative to NOW is ``age``."""
    return SnapshotEntry(timestamp=NOW - age, identifier=identifier if identifier is not None else f"age-{age}")


def entries_at(*ages: timedelta) -> list[SnapshotEntry]:
    return [entry_at(age) for age in ages]
