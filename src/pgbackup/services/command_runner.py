"""Subprocess execution service for pgbackup."""

import subprocess
from typing import IO, List, Optional

from pgbackup.errors import BackupError, CommandFailedError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        stdout: Optional[IO[str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run ``cmd`` to completion.

        When ``stdout`` is given the command's output stream is written to it
        and only stderr is captured. With ``check`` a non-zero exit raises
        :class:`CommandFailedError`; otherwise the result is returned for the
        caller to inspect.
        """
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        if stdout is not None:
            run_kwargs = {"stdout": stdout, "stderr": subprocess.PIPE}
            stderr_captured = True
        else:
            run_kwargs = {"capture_output": capture_output}
            stderr_captured = capture_output

        try:
            result = subprocess.run(cmd, text=True, **run_kwargs)
        except FileNotFoundError as exc:
            raise BackupError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except Exception as exc:
            raise BackupError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if stderr_captured else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise CommandFailedError(message, returncode=result.returncode, stderr=stderr)

        self.logger.warning(message)
        return result
