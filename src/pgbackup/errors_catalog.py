"""Actionable error catalog for pgbackup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "backup_dir_not_found": {
        "what": "Backup directory not found: {path}",
        "next": "Create the directory or pass another one with `--backup-dir`.",
    },
    "backup_dir_not_writable": {
        "what": "Backup directory is not writable: {path}",
        "next": "Fix the directory permissions or pass another one with `--backup-dir`.",
    },
    "restore_file_not_found": {
        "what": "Backup file does not exist: {path}",
        "next": "Run `pgbackup list` to see available dumps and retry with one of them.",
    },
    "secrets_file_not_found": {
        "what": "Secrets file not found: {path}",
        "next": "Create it with POSTGRES_USER/POSTGRES_DB entries or pass `--secrets-file`.",
    },
    "secret_missing": {
        "what": "Secret `{key}` is missing from {path}.",
        "next": "Add a `{key}=...` line to the secrets file.",
    },
    "container_not_running": {
        "what": "Container `{container}` is not running.",
        "next": "Start it with `docker compose up -d` or check the name with `docker ps`.",
    },
    "dump_failed": {
        "what": "pg_dumpall failed with exit status {returncode}. Partial output kept at {path}",
        "next": "Inspect the message above and the partial dump, then remove it before retrying.",
    },
    "dump_empty": {
        "what": "pg_dumpall produced an empty dump at {path}",
        "next": "Check that the database user can read every database in the container.",
    },
    "stage_failed": {
        "what": "Could not copy {path} into container `{container}` (exit status {returncode}).",
        "next": "Check that the container is running and has free space at the staging path.",
    },
    "restore_failed": {
        "what": "psql restore into `{database}` failed with exit status {returncode}.",
        "next": "Inspect the psql output above. Re-run with `--on-conflict continue` "
        "or restore into an empty database.",
    },
}


def actionable_error(code: str, **kwargs) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
