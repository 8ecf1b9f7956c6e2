"""
Tiered snapshot retention.

Usage:
    from snaprotate.retention import RetentionTierTable, RotationEngine

    table = RetentionTierTable.from_mapping({
        timedelta(0): timedelta(hours=1),
        timedelta(days=7): timedelta(days=7),
    })
    plan = RotationEngine(table).plan(entries, now=datetime.now().astimezone())
    for identifier in plan.to_delete:
        ...
"""

from snaprotate.retention.engine import RotationEngine, RotationPlan, SnapshotEntry
from snaprotate.retention.policy import RetentionRule, RetentionTierTable

__all__ = [
    "RetentionRule",
    "RetentionTierTable",
    "RotationEngine",
    "RotationPlan",
    "SnapshotEntry",
]
