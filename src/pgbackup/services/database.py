"""PostgreSQL dump and restore services for pgbackup."""

import os
import re
from typing import Callable, List

from pgbackup.constants import ON_CONFLICT_STOP
from pgbackup.errors import CommandFailedError
from pgbackup.errors_catalog import actionable_error
from pgbackup.models import BackupRecord, RestoreRequest


class DatabaseService:
    """Runs pg_dumpall and psql inside the database container."""

    PSQL_ERROR_PATTERN = re.compile(r"^psql:.*ERROR:", flags=re.MULTILINE)

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    @staticmethod
    def build_dump_command(container: str, user: str, clean: bool = False) -> List[str]:
        cmd = ["docker", "exec", container, "pg_dumpall", "-U", user]
        if clean:
            cmd += ["--clean", "--if-exists"]
        return cmd

    @staticmethod
    def build_restore_command(request: RestoreRequest) -> List[str]:
        cmd = [
            "docker",
            "exec",
            "-i",
            request.container,
            "psql",
            "-U",
            request.user,
            "-d",
            request.database,
        ]
        if request.on_conflict == ON_CONFLICT_STOP:
            cmd += ["-v", "ON_ERROR_STOP=1"]
        cmd += ["-f", request.staging_path]
        return cmd

    def dump_all(self, record: BackupRecord, file_obj, run_cmd: Callable, clean: bool = False):
        """Streams a full dump of the container's instance into ``file_obj``.

        The file is left in place on failure so the caller can inspect it.
        """
        self.console.print(f"[blue]Dumping all databases from {record.container}...[/blue]")
        self.logger.info("Dumping %s as %s into %s", record.container, record.user, record.path)

        result = run_cmd(
            self.build_dump_command(record.container, record.user, clean=clean),
            check=False,
            stdout=file_obj,
        )
        file_obj.flush()

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if stderr:
                self.logger.error(stderr)
            raise CommandFailedError(
                actionable_error("dump_failed", returncode=result.returncode, path=record.path),
                returncode=result.returncode,
                stderr=stderr,
            )

        if os.path.getsize(record.path) == 0:
            raise CommandFailedError(actionable_error("dump_empty", path=record.path), returncode=1)

    def restore(self, request: RestoreRequest, run_cmd: Callable):
        self.console.print(f"[blue]Restoring into database {request.database}...[/blue]")
        self.logger.info(
            "Restoring %s into %s/%s (on conflict: %s)",
            request.dump_path,
            request.container,
            request.database,
            request.on_conflict,
        )

        result = run_cmd(self.build_restore_command(request), check=False, capture_output=True)
        stderr = (result.stderr or "").strip()

        if result.returncode != 0:
            if stderr:
                self.logger.error(stderr)
            raise CommandFailedError(
                actionable_error(
                    "restore_failed",
                    database=request.database,
                    returncode=result.returncode,
                ),
                returncode=result.returncode,
                stderr=stderr,
            )

        skipped = self.PSQL_ERROR_PATTERN.findall(stderr)
        if skipped:
            self.logger.warning(
                "psql reported %s error(s) while restoring; conflicting statements were skipped.\n%s",
                len(skipped),
                stderr,
            )
