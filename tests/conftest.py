import subprocess

import pytest

import pgbackup.core as core_module


class RecordingConsole:
    def __init__(self):
        self.messages = []

    def print(self, message="", *_args, **_kwargs):
        self.messages.append(str(message))

    @property
    def text(self) -> str:
        return "\n".join(self.messages)


@pytest.fixture
def recording_console(monkeypatch):
    console = RecordingConsole()
    monkeypatch.setattr(core_module, "console", console)
    return console


@pytest.fixture
def secrets_file(tmp_path):
    path = tmp_path / "secrets.env"
    path.write_text("POSTGRES_USER=app_user\nPOSTGRES_DB=app\n", encoding="utf-8")
    path.chmod(0o600)
    return path


class FakeDocker:
    """Stands in for ``_run_cmd``, recording every command it is given."""

    def __init__(self, dump_output="-- PostgreSQL database cluster dump\n", failures=None):
        self.calls = []
        self.dump_output = dump_output
        self.failures = failures or {}

    def __call__(self, cmd, check=True, capture_output=False, stdout=None):
        self.calls.append(cmd)
        for marker, (returncode, stderr) in self.failures.items():
            if marker in cmd:
                return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)

        if "inspect" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout="true\n", stderr="")
        if "pg_dumpall" in cmd and stdout is not None:
            stdout.write(self.dump_output)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def commands(self, marker):
        return [cmd for cmd in self.calls if marker in cmd]


@pytest.fixture
def fake_docker():
    return FakeDocker()
