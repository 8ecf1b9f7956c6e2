"""
Human-readable durations.

Spacing rules are written as strings such as ``"1d"``, ``"2weeks"`` or
``"1h 30min"``. Components are summed; a bare number is taken as seconds.
"""

from __future__ import annotations

import re
from datetime import timedelta

_UNITS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 7 * 86400,
    "week": 7 * 86400,
    "weeks": 7 * 86400,
    "M": 2_630_016,  # 30.44 days
    "month": 2_630_016,
    "months": 2_630_016,
    "y": 31_557_600,  # 365.25 days
    "year": 31_557_600,
    "years": 31_557_600,
}

_COMPONENT_RE = re.compile(r"\s*(?P<num>\d+)\s*(?P<unit>[A-Za-z]*)")

_FORMAT_UNITS = [
    ("w", 7 * 86400),
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
]


def parse_duration(value: str) -> timedelta:
    """
    Parse a human-readable duration string.

    Args:
        value: Duration such as ``"90s"``, ``"7d"`` or ``"1h 30m"``

    Returns:
        The parsed duration

    Raises:
        ValueError: If the string is empty or contains an unknown unit
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("duration must be a non-empty string")

    text = value.strip()
    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise ValueError(f"invalid duration: {value!r}")
        unit = match.group("unit") or "s"
        if unit not in _UNITS:
            # Only months are case-sensitive ("M" vs "m")
            unit = unit.lower()
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {match.group('unit')!r} in duration {value!r}")
        total += int(match.group("num")) * _UNITS[unit]
        pos = match.end()
        while pos < len(text) and text[pos] in " ,":
            pos += 1

    return timedelta(seconds=total)


def format_duration(value: timedelta) -> str:
    """Format a duration compactly, e.g. ``"1w 2d 3h"``."""
    seconds = int(value.total_seconds())
    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    parts = []
    for label, size in _FORMAT_UNITS:
        amount, seconds = divmod(seconds, size)
        if amount:
            parts.append(f"{amount}{label}")
    return sign + " ".join(parts)
