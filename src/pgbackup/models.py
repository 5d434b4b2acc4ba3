"""Shared domain models for pgbackup."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackupRecord:
    """One dump file written by a backup run."""

    timestamp: str
    container: str
    user: str
    path: str


@dataclass(frozen=True)
class RestoreRequest:
    """Resolved inputs of a single restore run."""

    dump_path: str
    container: str
    database: str
    user: str
    staging_path: str
    on_conflict: str
