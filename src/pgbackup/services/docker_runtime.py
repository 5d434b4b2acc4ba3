"""Docker container helpers for pgbackup."""

from typing import Callable

from pgbackup.errors import BackupError, CommandFailedError
from pgbackup.errors_catalog import actionable_error


class DockerRuntimeService:
    """Wraps the docker primitives used by backup and restore runs."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def ensure_container_running(self, container: str, run_cmd: Callable):
        result = run_cmd(
            ["docker", "inspect", "-f", "{{.State.Running}}", container],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0 or (result.stdout or "").strip().lower() != "true":
            raise BackupError(actionable_error("container_not_running", container=container))
        self.logger.debug("Container %s is running.", container)

    def copy_into_container(self, local_path: str, container: str, target_path: str, run_cmd: Callable):
        self.console.print(f"[blue]Copying {local_path} into {container}:{target_path}...[/blue]")
        self.logger.info("Copying %s into %s:%s", local_path, container, target_path)

        result = run_cmd(
            ["docker", "cp", local_path, f"{container}:{target_path}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            raise CommandFailedError(
                actionable_error(
                    "stage_failed",
                    path=local_path,
                    container=container,
                    returncode=result.returncode,
                ),
                returncode=result.returncode,
                stderr=result.stderr,
            )

    def remove_from_container(self, container: str, target_path: str, run_cmd: Callable):
        try:
            result = run_cmd(
                ["docker", "exec", container, "rm", "-f", target_path],
                check=False,
                capture_output=True,
            )
        except BackupError as exc:
            self.logger.warning("Could not remove staged file %s:%s: %s", container, target_path, exc)
            return

        if result.returncode != 0:
            self.logger.warning("Could not remove staged file %s:%s", container, target_path)
