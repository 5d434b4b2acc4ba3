import logging
import os

import click
from rich.logging import RichHandler
from rich.table import Table

from .constants import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_CONFIG_FILE,
    ON_CONFLICT_CHOICES,
    ON_CONFLICT_CONTINUE,
)
from .core import BackupRunner, RestoreRunner, BackupError, console
from .services.config_loader import ConfigLoader
from .services.filesystem import FileSystemService

PROMPT_HINT_LIMIT = 5


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _require_container(container, config):
    container = _resolve_option(container, config, "container")
    if not container:
        raise click.ClickException("Missing required option '--container' (or provide it in config).")
    return container


def _backup_dir(backup_dir, config):
    return os.path.expanduser(_resolve_option(backup_dir, config, "backup_dir", default=DEFAULT_BACKUP_DIR))


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("pgbackup")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _make_path_prompt(backup_dir: str):
    def prompt() -> str:
        filesystem_service = FileSystemService(logger=logging.getLogger("pgbackup"), console=console)
        try:
            recent = filesystem_service.list_backups(backup_dir)[:PROMPT_HINT_LIMIT]
        except BackupError:
            recent = []

        if recent:
            console.print(f"[dim]Recent backups in {backup_dir}:[/dim]")
            for path, _ in recent:
                console.print(f"[dim]  {path}[/dim]")

        try:
            return click.prompt("Path to the backup file", type=str)
        except click.Abort as exc:
            raise BackupError("Restore cancelled: no backup file given.") from exc

    return prompt


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, config, verbose, log_file):
    """Back up and restore PostgreSQL databases running in Docker containers."""
    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    ctx.obj = config_values


@main.command()
@click.option("--container", required=False, help="Name of the running PostgreSQL container")
@click.option("--backup-dir", required=False, type=click.Path(), help="Directory receiving the dump")
@click.option("--user", required=False, help="Database user (default: POSTGRES_USER from secrets)")
@click.option("--secrets-file", required=False, type=click.Path(), help="KEY=VALUE secrets file")
@click.option(
    "--clean",
    is_flag=True,
    default=None,
    help="Emit DROP ... IF EXISTS statements so restoring overwrites existing objects.",
)
@click.pass_obj
def backup(config, container, backup_dir, user, secrets_file, clean):
    """Write a timestamped full dump of the container's databases."""
    try:
        runner = BackupRunner(
            container=_require_container(container, config),
            backup_dir=_backup_dir(backup_dir, config),
            user=user,
            secrets_file=_resolve_option(secrets_file, config, "secrets_file"),
            clean=bool(_resolve_option(clean, config, "clean", default=False)),
        )
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(runner.run())


@main.command()
@click.option("--container", required=False, help="Name of the running PostgreSQL container")
@click.option(
    "--file",
    "dump_path",
    required=False,
    type=click.Path(),
    help="Backup file to restore. Prompted for when omitted.",
)
@click.option("--database", required=False, help="Target database (default: POSTGRES_DB from secrets)")
@click.option("--user", required=False, help="Database user (default: POSTGRES_USER from secrets)")
@click.option("--secrets-file", required=False, type=click.Path(), help="KEY=VALUE secrets file")
@click.option(
    "--backup-dir",
    required=False,
    type=click.Path(),
    help="Directory whose recent dumps are listed in the prompt.",
)
@click.option("--staging-path", required=False, help="In-container path the dump is copied to")
@click.option(
    "--on-conflict",
    required=False,
    type=click.Choice(ON_CONFLICT_CHOICES),
    help="continue: skip statements that fail; stop: abort on the first failing statement.",
)
@click.pass_obj
def restore(config, container, dump_path, database, user, secrets_file, backup_dir, staging_path, on_conflict):
    """Load a dump file into the container's database."""
    try:
        runner = RestoreRunner(
            container=_require_container(container, config),
            dump_path=dump_path,
            database=database,
            user=user,
            secrets_file=_resolve_option(secrets_file, config, "secrets_file"),
            staging_path=_resolve_option(staging_path, config, "staging_path"),
            on_conflict=_resolve_option(on_conflict, config, "on_conflict", default=ON_CONFLICT_CONTINUE),
            path_prompt=_make_path_prompt(_backup_dir(backup_dir, config)),
        )
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(runner.run())


@main.command(name="list")
@click.option("--backup-dir", required=False, type=click.Path(), help="Directory holding the dumps")
@click.option(
    "--limit",
    required=False,
    type=click.IntRange(min=1),
    default=None,
    help="Show only the newest N dumps",
)
@click.pass_obj
def list_backups(config, backup_dir, limit):
    """List dump files, newest first."""
    backup_dir = _backup_dir(backup_dir, config)
    filesystem_service = FileSystemService(logger=logging.getLogger("pgbackup"), console=console)

    try:
        backups = filesystem_service.list_backups(backup_dir)
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    if limit is not None:
        backups = backups[:limit]

    if not backups:
        console.print(f"[yellow]No backups found in {backup_dir}.[/yellow]")
        return

    table = Table(title=f"Backups in {backup_dir}")
    table.add_column("File")
    table.add_column("Size (bytes)", justify="right")
    for path, size in backups:
        table.add_row(os.path.basename(path), str(size))
    console.print(table)


if __name__ == "__main__":
    main()
