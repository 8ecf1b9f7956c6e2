"""
Retention tiers for snapshot rotation.

A tier table is an ordered list of (minimum age, minimum spacing) rules.
Snapshots at least ``min_age`` old fall under the rule and should be spaced
at least ``min_spacing`` apart. The table is kept sorted by age; a rule's
index in that order is its tier number.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import timedelta

from snaprotate.utils.durations import format_duration


@dataclass(frozen=True)
class RetentionRule:
    """
    A single retention rule.

    Attributes:
        min_age: Age from which the rule applies
        min_spacing: Minimum time between two retained snapshots
    """

    min_age: timedelta
    min_spacing: timedelta

    def describe(self) -> str:
        return f"from age {format_duration(self.min_age)}, spacing {format_duration(self.min_spacing)}"


class RetentionTierTable:
    """
    Rules sorted ascending by minimum age.

    An empty table assigns no tier to anything, so nothing is ever eligible
    for deletion.
    """

    def __init__(self, rules: list[RetentionRule] | None = None):
        # Stable sort keeps declaration order for equal ages
        self._rules = tuple(sorted(rules or [], key=lambda r: r.min_age))
        self._ages = [r.min_age for r in self._rules]

    @classmethod
    def from_mapping(cls, spacings: Mapping[timedelta, timedelta]) -> RetentionTierTable:
        """
        Build a table from an ``age -> spacing`` mapping.

        Args:
            spacings: Mapping of minimum age to minimum spacing

        Returns:
            RetentionTierTable sorted by age
        """
        return cls([RetentionRule(min_age=age, min_spacing=spacing) for age, spacing in spacings.items()])

    def tier_count(self) -> int:
        return len(self._rules)

    def rule(self, tier: int) -> RetentionRule:
        """Get the rule for a tier number."""
        return self._rules[tier]

    def assign_tier(self, age: timedelta) -> int | None:
        """
        Determine the tier for a snapshot of the given age.

        Args:
            age: Age of the snapshot

        Returns:
            The greatest tier whose ``min_age`` is at most ``age``, or None if
            the snapshot is younger than every rule
        """
        index = bisect_right(self._ages, age) - 1
        return index if index >= 0 else None

    def describe(self) -> list[str]:
        return [f"tier {tier}: {rule.describe()}" for tier, rule in enumerate(self._rules)]

    def __iter__(self) -> Iterator[RetentionRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RetentionTierTable({list(self._rules)!r})"
