from click.testing import CliRunner

import pgbackup.cli as cli_module


def _fake_runner(captured, exit_code=0):
    class FakeRunner:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self):
            prompt = captured.get("path_prompt")
            if captured.get("dump_path") is None and prompt is not None:
                captured["prompted_path"] = prompt()
            return exit_code

    return FakeRunner


def test_backup_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / ".pgbackup.yml"
    config_file.write_text(
        "container: config_db\n" f"backup_dir: {tmp_path}\n" "clean: true\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "BackupRunner", _fake_runner(captured))

    result = CliRunner().invoke(
        cli_module.main,
        ["--config", str(config_file), "backup", "--container", "cli_db"],
    )

    assert result.exit_code == 0
    assert captured["container"] == "cli_db"
    assert captured["backup_dir"] == str(tmp_path)
    assert captured["clean"] is True


def test_backup_exit_code_mirrors_runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "BackupRunner", _fake_runner({}, exit_code=2))

    result = CliRunner().invoke(cli_module.main, ["backup", "--container", "db"])

    assert result.exit_code == 2


def test_backup_requires_container(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["backup"])

    assert result.exit_code != 0
    assert "--container" in result.output


def test_restore_prompts_for_path_when_not_given(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    captured = {}
    monkeypatch.setattr(cli_module, "RestoreRunner", _fake_runner(captured))

    result = CliRunner().invoke(
        cli_module.main,
        ["restore", "--container", "db", "--backup-dir", str(tmp_path), "--on-conflict", "stop"],
        input="/srv/backups/backup_261019_020000.sql\n",
    )

    assert result.exit_code == 0
    assert captured["prompted_path"] == "/srv/backups/backup_261019_020000.sql"
    assert captured["on_conflict"] == "stop"
    assert "Path to the backup file" in result.output


def test_restore_rejects_unknown_conflict_policy(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.main,
        ["restore", "--container", "db", "--on-conflict", "overwrite"],
    )

    assert result.exit_code == 2


def test_list_shows_newest_backup_first(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "backup_261018_020000.sql").write_text("-- old\n", encoding="utf-8")
    (tmp_path / "backup_261019_020000.sql").write_text("-- new\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["list", "--backup-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert result.output.index("backup_261019_020000.sql") < result.output.index(
        "backup_261018_020000.sql"
    )


def test_list_reports_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["list", "--backup-dir", str(tmp_path / "missing")])

    assert result.exit_code == 1
    assert "Backup directory not found" in result.output


def test_string_flag_in_config_is_rejected(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".pgbackup.yml").write_text('container: db\nclean: "false"\n', encoding="utf-8")
    monkeypatch.setattr(cli_module, "BackupRunner", _fake_runner({}))

    result = CliRunner().invoke(cli_module.main, ["backup"])

    assert result.exit_code == 1
    assert "must be true or false" in result.output


def test_list_rejects_non_positive_limit(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["list", "--backup-dir", str(tmp_path), "--limit", "0"])

    assert result.exit_code == 2
