"""Domain errors for pgbackup."""

from typing import Optional


class BackupError(RuntimeError):
    """Raised when a backup or restore cannot continue."""


class BackupFileNotFoundError(BackupError):
    """Raised when the dump file handed to a restore does not exist."""


class CommandFailedError(BackupError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, message: str, returncode: int, stderr: Optional[str] = None):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr or ""
