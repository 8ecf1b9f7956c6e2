"""Shared fixtures for snaprotate tests."""

from datetime import timedelta

import pytest
from loguru import logger

from tests.fixtures.snapshots import NOW, SNAPSHOT_FORMAT


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="TRACE")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def snapshot_dir(tmp_path):
    """Create an empty snapshot directory."""
    path = tmp_path / "snapshots"
    path.mkdir()
    return path


@pytest.fixture
def make_snapshots(snapshot_dir):
    """Create snapshot directories at the given ages relative to NOW."""

    def _make(*ages: timedelta) -> list:
        paths = []
        for age in ages:
            path = snapshot_dir / (NOW - age).strftime(SNAPSHOT_FORMAT)
            path.mkdir()
            paths.append(path)
        return paths

    return _make
