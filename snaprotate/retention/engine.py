"""
Snapshot rotation engine.

Decides which snapshots to delete so that, within each retention tier,
retained snapshots are at least the tier's minimum spacing apart.

The engine never touches the filesystem. Identifiers are opaque hashable
handles passed back to the caller; the catalog uses paths, tests use
plain strings.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from snaprotate.retention.policy import RetentionTierTable
from snaprotate.utils.durations import format_duration


@dataclass(frozen=True)
class SnapshotEntry:
    """
    A single existing snapshot.

    Attributes:
        timestamp: Point in time parsed from the snapshot name
        identifier: Opaque handle for the snapshot (a path on disk)
        age: Age relative to the rotation pass's ``now``; None until assigned
        tier: Retention tier; None if unassigned or younger than every rule
    """

    timestamp: datetime
    identifier: Hashable
    age: timedelta | None = None
    tier: int | None = None


def _beyond(tier: int | None, rule: int) -> bool:
    # Untiered entries rank below every rule
    return tier is not None and tier > rule


@dataclass
class RotationPlan:
    """
    Outcome of a rotation pass.

    Attributes:
        now: Reference time the ages were computed against
        entries: Tier-assigned entries, newest first
        to_delete: Identifiers selected for deletion, in selection order
    """

    now: datetime
    entries: list[SnapshotEntry] = field(default_factory=list)
    to_delete: list[Hashable] = field(default_factory=list)

    @property
    def to_keep(self) -> list[Hashable]:
        doomed = set(self.to_delete)
        return [e.identifier for e in self.entries if e.identifier not in doomed]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reporting."""
        doomed = set(self.to_delete)
        return {
            "now": self.now.isoformat(),
            "entries": [
                {
                    "identifier": str(e.identifier),
                    "timestamp": e.timestamp.isoformat(),
                    "age": format_duration(e.age) if e.age is not None else None,
                    "tier": e.tier,
                    "action": "delete" if e.identifier in doomed else "keep",
                }
                for e in self.entries
            ],
            "delete_count": len(self.to_delete),
            "keep_count": len(self.entries) - len(doomed),
        }


class RotationEngine:
    """
    Applies a retention tier table to a set of snapshot entries.

    For each tier, walks the entries newest to oldest keeping an anchor (the
    last entry found adequately spaced) and marks entries of that tier that
    sit too close to their neighbours.
    """

    def __init__(self, table: RetentionTierTable):
        self._table = table

    @property
    def table(self) -> RetentionTierTable:
        return self._table

    def assign_tiers(self, entries: Iterable[SnapshotEntry], now: datetime) -> list[SnapshotEntry]:
        """
        Compute age and tier for each entry against a single reference time.

        Args:
            entries: Entries as produced by the catalog
            now: Reference time for the whole pass

        Returns:
            New entries with ``age`` and ``tier`` filled in
        """
        assigned = []
        for entry in entries:
            age = now - entry.timestamp
            assigned.append(replace(entry, age=age, tier=self._table.assign_tier(age)))
        return assigned

    def select_for_deletion(self, entries: Iterable[SnapshotEntry]) -> list[Hashable]:
        """
        Select the entries to delete.

        Args:
            entries: Tier-assigned entries, in any order

        Returns:
            Identifiers to delete, without duplicates
        """
        ordered = sorted(entries, key=lambda e: e.timestamp, reverse=True)
        delete: dict[Hashable, None] = {}

        if len(ordered) < 2:
            return []

        for tier, rule in enumerate(self._table):
            logger.trace(
                f"Purging for rule {tier}, until age {format_duration(rule.min_age)}, "
                f"spacing {format_duration(rule.min_spacing)}"
            )
            anchor = ordered[0]
            logger.trace(f"  Initial {anchor.timestamp}")

            for current, older in zip(ordered[1:], ordered[2:]):
                if _beyond(current.tier, tier):
                    break

                applies = current.tier == tier
                spacing = max(
                    anchor.timestamp - current.timestamp,
                    current.timestamp - older.timestamp,
                )
                logger.trace(
                    f"  {'Considering' if applies else 'Skipping'} {current.timestamp}, "
                    f"rule {current.tier}, spacing {format_duration(spacing)}"
                )

                if spacing < rule.min_spacing:
                    if applies:
                        delete[current.identifier] = None
                        logger.debug(f"  Dropping {current.timestamp}")
                        logger.debug(f"    Favoring: {anchor.timestamp}")
                        logger.debug(f"    Spacing:  {format_duration(spacing)}")
                        logger.debug(f"    Intended: {format_duration(rule.min_spacing)}")
                else:
                    anchor = current

        return list(delete)

    def plan(self, entries: Iterable[SnapshotEntry], now: datetime) -> RotationPlan:
        """
        Assign tiers and select deletions in one pass.

        Args:
            entries: Entries as produced by the catalog
            now: Reference time for the pass

        Returns:
            RotationPlan with entries sorted newest first
        """
        assigned = self.assign_tiers(entries, now)
        assigned.sort(key=lambda e: e.timestamp, reverse=True)
        return RotationPlan(now=now, entries=assigned, to_delete=self.select_for_deletion(assigned))
