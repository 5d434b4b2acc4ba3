import logging
import subprocess

import pytest

from pgbackup.errors import BackupError, CommandFailedError
from pgbackup.services.docker_runtime import DockerRuntimeService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def _service():
    return DockerRuntimeService(logger=DummyLogger(), console=DummyConsole())


def test_ensure_container_running_accepts_running_container():
    calls = []

    def fake_run_cmd(cmd, check=False, capture_output=True):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="true\n", stderr="")

    _service().ensure_container_running("db", fake_run_cmd)

    assert calls == [["docker", "inspect", "-f", "{{.State.Running}}", "db"]]


@pytest.mark.parametrize(
    "returncode,stdout",
    [(0, "false\n"), (1, "")],
)
def test_ensure_container_running_rejects_stopped_or_unknown_container(returncode, stdout):
    def fake_run_cmd(cmd, check=False, capture_output=True):
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    with pytest.raises(BackupError, match="Container `db` is not running"):
        _service().ensure_container_running("db", fake_run_cmd)


def test_copy_into_container_raises_with_exit_status():
    def fake_run_cmd(cmd, check=False, capture_output=True):
        return subprocess.CompletedProcess(cmd, 125, stdout="", stderr="no such container")

    with pytest.raises(CommandFailedError, match="exit status 125") as exc_info:
        _service().copy_into_container("/tmp/dump.sql", "db", "/backup-file.sql", fake_run_cmd)

    assert exc_info.value.returncode == 125


def test_copy_into_container_uses_container_target_syntax():
    calls = []

    def fake_run_cmd(cmd, check=False, capture_output=True):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    _service().copy_into_container("/tmp/dump.sql", "db", "/backup-file.sql", fake_run_cmd)

    assert calls == [["docker", "cp", "/tmp/dump.sql", "db:/backup-file.sql"]]


def test_remove_from_container_logs_instead_of_raising(caplog):
    service = DockerRuntimeService(logger=logging.getLogger("test.docker"), console=DummyConsole())

    def failing_run_cmd(cmd, check=False, capture_output=True):
        raise BackupError("Required command not found: docker. Please install it and try again.")

    with caplog.at_level(logging.WARNING, logger="test.docker"):
        service.remove_from_container("db", "/backup-file.sql", failing_run_cmd)

    assert "Could not remove staged file db:/backup-file.sql" in caplog.text
