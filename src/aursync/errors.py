"""
Exceptions raised by aursync.

Fatal errors abort a whole command. Per-package failures never surface as
exceptions to the caller: the batch executor records them by name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .partition import PkgPartition


class AursyncError(Exception):
    """Base exception for all aursync errors."""


class ClonesRootError(AursyncError):
    """Raised when the clones directory exists but cannot be read."""


class AurError(AursyncError):
    """Raised when the AUR RPC returns an error or cannot be reached."""


class ProviderUnreachableError(AursyncError):
    """Raised when no AUR lookup in a partition call succeeded."""


class NothingValidError(AursyncError):
    """Raised when none of the requested packages is cloned or real."""

    def __init__(self, partition: "PkgPartition") -> None:
        super().__init__("No valid packages specified.")
        self.partition = partition


class CacheDirError(AursyncError):
    """Raised when the package cache directory cannot be read."""


class BackupTargetError(AursyncError):
    """Raised when a backup target cannot be used as a directory."""


class TargetIsFileError(BackupTargetError):
    """Raised when a backup target is an existing regular file."""


class GitError(AursyncError):
    """A failed git invocation."""

    def __init__(self, command: str, returncode: Optional[int], stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git {command} failed: {detail}")
