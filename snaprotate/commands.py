"""
External command execution.

Mounting and snapshot operations are performed by the system's ``mount``,
``umount`` and ``btrfs`` tools. ``maybe_run`` honours dry-run mode by
printing the command instead of executing it.
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence

from loguru import logger

from snaprotate.errors import CommandError


class CommandRunner:
    """Runs external commands and returns their stdout."""

    def __init__(self, dry_run: bool = False):
        """
        Initialize the runner.

        Args:
            dry_run: If True, ``maybe_run`` only prints commands
        """
        self.dry_run = dry_run

    def run(self, args: Sequence[str]) -> str:
        """
        Execute a command and return its stdout.

        Args:
            args: Program and arguments

        Returns:
            Captured stdout

        Raises:
            CommandError: If the program cannot be started or exits non-zero
        """
        args = [str(a) for a in args]
        logger.trace(f"Running {shlex.join(args)}")
        try:
            completed = subprocess.run(args, capture_output=True, text=True, errors="surrogateescape")
        except OSError as e:
            raise CommandError(args, None, str(e)) from e

        if completed.returncode != 0:
            raise CommandError(args, completed.returncode, (completed.stderr or "").strip())
        return completed.stdout

    def maybe_run(self, args: Sequence[str]) -> str:
        """Run a mutating command, or just print it in dry-run mode."""
        if self.dry_run:
            print(shlex.join(str(a) for a in args))
            return ""
        return self.run(args)
