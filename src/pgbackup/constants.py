"""Shared constants for pgbackup."""

import os

BACKUP_FILE_PREFIX = "backup_"
BACKUP_FILE_SUFFIX = ".sql"
TIMESTAMP_FORMAT = "%y%m%d_%H%M%S"

DEFAULT_BACKUP_DIR = os.path.join("~", "backups")
DEFAULT_SECRETS_FILE = os.path.join("~", ".pgbackup", "secrets.env")
DEFAULT_CONFIG_FILE = ".pgbackup.yml"
DEFAULT_STAGING_PATH = "/backup-file.sql"

ON_CONFLICT_CONTINUE = "continue"
ON_CONFLICT_STOP = "stop"
ON_CONFLICT_CHOICES = [ON_CONFLICT_CONTINUE, ON_CONFLICT_STOP]

USER_SECRET_KEY = "POSTGRES_USER"
DATABASE_SECRET_KEY = "POSTGRES_DB"

# Secrets files readable by group or others trigger a warning.
SECRETS_FORBIDDEN_MODE_BITS = 0o077
