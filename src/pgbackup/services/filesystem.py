"""Filesystem helpers for pgbackup."""

import logging
import os
import re
import sys
from typing import IO, List, Tuple

from rich.console import Console

from pgbackup.constants import BACKUP_FILE_PREFIX, BACKUP_FILE_SUFFIX
from pgbackup.errors import BackupError
from pgbackup.errors_catalog import actionable_error

DUMP_FILE_MODE = 0o600


class FileSystemService:
    """Encapsulates file and directory side effects."""

    BACKUP_NAME_PATTERN = re.compile(
        rf"^{re.escape(BACKUP_FILE_PREFIX)}(\d{{6}}_\d{{6}})(?:_(\d+))?{re.escape(BACKUP_FILE_SUFFIX)}$"
    )

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except Exception as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_writable_dir(self, path: str):
        if not os.path.isdir(path):
            raise BackupError(actionable_error("backup_dir_not_found", path=path))
        if not os.access(path, os.W_OK | os.X_OK):
            raise BackupError(actionable_error("backup_dir_not_writable", path=path))

    def create_backup_file(self, backup_dir: str, timestamp: str) -> Tuple[str, IO[str]]:
        """Creates a new dump file named after ``timestamp``.

        Uses exclusive creation so concurrent runs in the same second never
        share a file; later ones get a ``_1``, ``_2``... suffix.
        """
        suffix = 0
        while True:
            stem = f"{BACKUP_FILE_PREFIX}{timestamp}"
            if suffix:
                stem = f"{stem}_{suffix}"
            path = os.path.join(backup_dir, f"{stem}{BACKUP_FILE_SUFFIX}")
            try:
                file_obj = open(path, "x", encoding="utf-8")
            except FileExistsError:
                suffix += 1
                continue
            except OSError as exc:
                raise BackupError(f"Could not create backup file '{path}': {exc}") from exc

            self.set_permissions(path, DUMP_FILE_MODE)
            if suffix:
                self.logger.warning("Backup name for %s already taken, using %s", timestamp, path)
            return path, file_obj

    def list_backups(self, backup_dir: str) -> List[Tuple[str, int]]:
        """Returns ``(path, size)`` for every dump in ``backup_dir``, newest first."""
        if not os.path.isdir(backup_dir):
            raise BackupError(actionable_error("backup_dir_not_found", path=backup_dir))

        entries = []
        for file_name in os.listdir(backup_dir):
            match = self.BACKUP_NAME_PATTERN.match(file_name)
            if not match:
                continue
            path = os.path.join(backup_dir, file_name)
            if not os.path.isfile(path):
                continue
            sort_key = (match.group(1), int(match.group(2) or 0))
            entries.append((sort_key, path, os.path.getsize(path)))

        entries.sort(key=lambda entry: entry[0], reverse=True)
        return [(path, size) for _, path, size in entries]
