"""
Error types for snapshot rotation.

Parse errors are handled inside the catalog; everything else is wrapped
with the operation that failed and propagated to the rotation job.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence


class SnaprotateError(Exception):
    """Base exception for all snaprotate errors."""


class ConfigError(SnaprotateError):
    """Raised when the configuration is missing, unreadable or invalid."""

    def __init__(self, reason: str, target: str | None = None, field: str | None = None):
        self.reason = reason
        self.target = target
        self.field = field
        super().__init__(reason)


class ParseError(SnaprotateError):
    """Raised when a snapshot name does not match the configured format."""

    def __init__(self, name: str, name_format: str):
        self.name = name
        self.name_format = name_format
        super().__init__(f"Name {name!r} does not match format `{name_format}`")


class CommandError(SnaprotateError):
    """Raised when an external command cannot be run or exits non-zero."""

    def __init__(self, args: Sequence[str], returncode: int | None, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            msg = f"Failed to execute {self.command}"
        else:
            msg = f"Command {self.command} failed with exit code {returncode}"
        if stderr:
            msg += f": {stderr}"
        super().__init__(msg)

    @property
    def command(self) -> str:
        """The failing command, shell-quoted."""
        return shlex.join(self.args_list)


class MountError(SnaprotateError):
    """Raised when mounting, unmounting or checking a mount point fails."""

    def __init__(self, mount_point: str, operation: str, cause: Exception | None = None):
        self.mount_point = mount_point
        self.operation = operation
        self.cause = cause
        msg = f"{operation.capitalize()} {mount_point} failed"
        if cause:
            msg += f"\nCause: {cause}"
        super().__init__(msg)


class StoreError(SnaprotateError):
    """Raised when creating, deleting or listing snapshots fails."""

    def __init__(self, operation: str, path: str, cause: Exception | None = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        msg = f"Store error during {operation}: {path}"
        if cause:
            msg += f"\nCause: {cause}"
        super().__init__(msg)

    @property
    def command(self) -> str | None:
        """The failing command, if the error came from one."""
        if isinstance(self.cause, CommandError):
            return self.cause.command
        return None

    @property
    def stderr(self) -> str:
        if isinstance(self.cause, CommandError):
            return self.cause.stderr
        return ""
