"""Test fixtures and synthetic snapshot generators."""

from tests.fixtures.snapshots import (
    DAY,
    HOUR,
    NOW,
    SNAPSHOT_FORMAT,
    WEEK,
    entries_at,
    entry_at,
)

__all__ = [
    "DAY",
    "HOUR",
    "NOW",
    "SNAPSHOT_FORMAT",
    "WEEK",
    "entries_at",
    "entry_at",
]
