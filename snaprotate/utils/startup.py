"""Startup validation for snaprotate.

Provides fail-fast validation that the external tools a run needs exist.
"""

from __future__ import annotations

import shutil

from loguru import logger

MOUNT_TOOLS = ("mount", "umount")
SNAPSHOT_TOOLS = ("btrfs",)


def validate_startup(dry_run: bool = False) -> list[str]:
    """
    Validate that required executables are on PATH.

    ``btrfs`` is not needed in dry-run mode, since its commands are only
    printed; mount tools always are.

    Returns:
        List of error messages. Empty if all valid.
    """
    required = MOUNT_TOOLS if dry_run else MOUNT_TOOLS + SNAPSHOT_TOOLS
    return [f"Required executable not found: {tool}" for tool in required if shutil.which(tool) is None]


def fail_fast_startup(dry_run: bool = False) -> None:
    """
    Validate startup and raise if invalid.

    Raises:
        RuntimeError: If a required executable is missing.
    """
    errors = validate_startup(dry_run)
    if errors:
        error_msg = "Startup validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    logger.debug("Startup validation passed")
