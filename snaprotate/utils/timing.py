"""
Timing utilities for per-target run reports.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator

from loguru import logger


@dataclass
class TimingMetrics:
    """Elapsed time of a target's run, with per-phase breakdown."""

    name: str
    elapsed_seconds: float = 0.0
    phases: dict[str, float] = field(default_factory=dict)

    def log(self, level: str = "info") -> None:
        """
        Log timing metrics.

        Args:
            level: Log level ('trace', 'debug', 'info')
        """
        log_fn = getattr(logger, level)
        log_fn(f"Timing [{self.name}]: {self.elapsed_seconds:.3f}s")

        for phase, seconds in self.phases.items():
            pct = (seconds / self.elapsed_seconds * 100) if self.elapsed_seconds > 0 else 0
            log_fn(f"  - {phase}: {seconds:.3f}s ({pct:.1f}%)")


@contextmanager
def timed_section(name: str) -> Generator[TimingMetrics, None, None]:
    """
    Context manager for timing a target's run.

    Usage:
        with timed_section("home") as metrics:
            with timed_phase(metrics, "take"):
                store.create(...)

        metrics.log()

    Yields:
        TimingMetrics filled in when the block exits
    """
    metrics = TimingMetrics(name=name)
    start = time.perf_counter()
    try:
        yield metrics
    finally:
        metrics.elapsed_seconds = time.perf_counter() - start


@contextmanager
def timed_phase(metrics: TimingMetrics, phase: str) -> Generator[None, None, None]:
    """Record the duration of one phase into ``metrics.phases``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        metrics.phases[phase] = metrics.phases.get(phase, 0.0) + time.perf_counter() - start
