import logging
import os
from datetime import datetime
from typing import Callable, List, Optional

from rich.console import Console

from .constants import (
    DATABASE_SECRET_KEY,
    DEFAULT_BACKUP_DIR,
    DEFAULT_SECRETS_FILE,
    DEFAULT_STAGING_PATH,
    ON_CONFLICT_CHOICES,
    ON_CONFLICT_CONTINUE,
    TIMESTAMP_FORMAT,
    USER_SECRET_KEY,
)
from .errors import BackupError, BackupFileNotFoundError, CommandFailedError
from .errors_catalog import actionable_error
from .models import BackupRecord, RestoreRequest
from .services.command_runner import CommandRunner
from .services.database import DatabaseService
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.secrets_loader import SecretsLoader

console = Console()
logger = logging.getLogger("pgbackup")


class _Runner:
    """Shared wiring and exit-status handling for backup and restore runs."""

    action = "run"

    def __init__(self, container: str, secrets_file: Optional[str]):
        if not container or not container.strip():
            raise BackupError("A container name is required.")

        self.container = container.strip()
        self.secrets_file = secrets_file or DEFAULT_SECRETS_FILE

        self.command_runner = CommandRunner(logger=logger)
        self.secrets_loader = SecretsLoader(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.docker_runtime_service = DockerRuntimeService(logger=logger, console=console)
        self.database_service = DatabaseService(logger=logger, console=console)

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        stdout=None,
    ):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, stdout=stdout)

    def execute(self):
        raise NotImplementedError

    def report_success(self, result):
        raise NotImplementedError

    def run(self) -> int:
        """Executes the run and maps its outcome to a process exit status."""
        try:
            result = self.execute()
            self.report_success(result)
            return 0
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except CommandFailedError as exc:
            console.print(f"[bold red]{self.action.capitalize()} failed:[/bold red] {exc}")
            logger.error(str(exc))
            return exc.returncode or 1
        except BackupError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1


class BackupRunner(_Runner):
    """Writes one full dump of a containerised PostgreSQL instance per run."""

    action = "backup"

    def __init__(
        self,
        container: str,
        backup_dir: Optional[str] = None,
        user: Optional[str] = None,
        secrets_file: Optional[str] = None,
        clean: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(container, secrets_file)
        self.backup_dir = os.path.expanduser(backup_dir or DEFAULT_BACKUP_DIR)
        self.user = user
        self.clean = clean
        self.clock = clock

    def _resolve_user(self) -> str:
        if self.user is not None:
            if not self.user.strip():
                raise BackupError("Database user must not be empty.")
            return self.user.strip()

        with self.secrets_loader.scoped(self.secrets_file) as secrets:
            return secrets.require(USER_SECRET_KEY)

    def execute(self) -> BackupRecord:
        logger.info("Starting backup of %s...", self.container)

        self.filesystem_service.ensure_writable_dir(self.backup_dir)
        user = self._resolve_user()
        self.docker_runtime_service.ensure_container_running(self.container, self._run_cmd)

        timestamp = self.clock().strftime(TIMESTAMP_FORMAT)
        path, file_obj = self.filesystem_service.create_backup_file(self.backup_dir, timestamp)
        record = BackupRecord(timestamp=timestamp, container=self.container, user=user, path=path)

        with file_obj:
            self.database_service.dump_all(record, file_obj, self._run_cmd, clean=self.clean)

        return record

    def report_success(self, result: BackupRecord):
        console.print(f"[bold green]Backup successful: {result.path}[/bold green]")
        logger.info("Backup written to %s", result.path)


class RestoreRunner(_Runner):
    """Loads a dump file into a running PostgreSQL container."""

    action = "restore"

    def __init__(
        self,
        container: str,
        dump_path: Optional[str] = None,
        database: Optional[str] = None,
        user: Optional[str] = None,
        secrets_file: Optional[str] = None,
        staging_path: Optional[str] = None,
        on_conflict: str = ON_CONFLICT_CONTINUE,
        path_prompt: Optional[Callable[[], str]] = None,
    ):
        super().__init__(container, secrets_file)
        if on_conflict not in ON_CONFLICT_CHOICES:
            raise BackupError(
                f"Invalid conflict policy '{on_conflict}'. Choose one of: {', '.join(ON_CONFLICT_CHOICES)}"
            )
        self.dump_path = dump_path
        self.database = database
        self.user = user
        self.staging_path = staging_path or DEFAULT_STAGING_PATH
        self.on_conflict = on_conflict
        self.path_prompt = path_prompt

    def resolve_dump_path(self) -> str:
        dump_path = self.dump_path
        if dump_path is None and self.path_prompt is not None:
            dump_path = self.path_prompt()
        if not dump_path or not dump_path.strip():
            raise BackupError("A backup file path is required.")

        # docker cp reads "name:path" as a container path; absolute paths avoid that.
        path = os.path.abspath(os.path.expanduser(dump_path.strip()))
        if not os.path.isfile(path):
            raise BackupFileNotFoundError(actionable_error("restore_file_not_found", path=path))
        return path

    def build_request(self, dump_path: str) -> RestoreRequest:
        user = self.user
        database = self.database
        if user is None or database is None:
            with self.secrets_loader.scoped(self.secrets_file) as secrets:
                if user is None:
                    user = secrets.require(USER_SECRET_KEY)
                if database is None:
                    database = secrets.require(DATABASE_SECRET_KEY)

        if not user.strip():
            raise BackupError("Database user must not be empty.")
        if not database.strip():
            raise BackupError("Database name must not be empty.")

        return RestoreRequest(
            dump_path=dump_path,
            container=self.container,
            database=database.strip(),
            user=user.strip(),
            staging_path=self.staging_path,
            on_conflict=self.on_conflict,
        )

    def execute(self) -> RestoreRequest:
        # No docker call may happen before the dump file is known to exist.
        dump_path = self.resolve_dump_path()
        request = self.build_request(dump_path)
        logger.info("Starting restore of %s into %s...", dump_path, self.container)

        self.docker_runtime_service.ensure_container_running(request.container, self._run_cmd)
        self.docker_runtime_service.copy_into_container(
            request.dump_path, request.container, request.staging_path, self._run_cmd
        )
        try:
            self.database_service.restore(request, self._run_cmd)
        finally:
            self.docker_runtime_service.remove_from_container(
                request.container, request.staging_path, self._run_cmd
            )

        return request

    def report_success(self, result: RestoreRequest):
        console.print(
            f"[bold green]Restore successful: {result.dump_path} -> {result.database}[/bold green]"
        )
        logger.info("Restored %s into %s", result.dump_path, result.database)
