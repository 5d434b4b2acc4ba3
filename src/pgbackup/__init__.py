"""
pgbackup - Backup and restore PostgreSQL databases running in Docker containers
"""

__version__ = "0.1.0"

from .core import BackupRunner, RestoreRunner
from .errors import BackupError

__all__ = ["BackupRunner", "RestoreRunner", "BackupError"]
