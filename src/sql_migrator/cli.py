"""CLI interface for SQL-Migrator."""

import sys
from pathlib import Path

# Runtime version check - must be before other imports
if sys.version_info < (3, 11):
    print("Error: SQL-Migrator requires Python 3.11 or higher", file=sys.stderr)
    version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print(f"Current version: {version}", file=sys.stderr)
    sys.exit(1)

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .commands import MigrateHandler, NewHandler
from .config import Config, create_default_config, get_config_path, load_config
from .display import display_migrate_results, display_new_migration, display_status_table
from .errors import ConfigError, MigratorError
from .utils import expand_path, prompt_confirm

console = Console()


def _configure_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _apply_overrides(config: Config, dsn: str | None, migrations_dir: Path | None) -> Config:
    """Return config with command line overrides applied."""
    if dsn is not None:
        config = config.model_copy(update={"database": config.database.model_copy(update={"dsn": dsn})})
    if migrations_dir is not None:
        config = config.model_copy(
            update={"migrations": config.migrations.model_copy(update={"directory": migrations_dir.resolve()})}
        )
    return config


dsn_option = click.option("--dsn", default=None, help="Database DSN (overrides config)")
dir_option = click.option(
    "--dir",
    "migrations_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Migrations directory (overrides config)",
)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Custom config file path",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """SQL-Migrator: Apply versioned SQL migration scripts in order."""
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = load_config(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] Configuration: {escape(str(e))}")
        sys.exit(1)

    _configure_logging("DEBUG" if verbose else ctx.obj["config"].log_level)


@cli.command()
@dsn_option
@dir_option
@click.pass_context
def migrate(ctx: click.Context, dsn: str | None, migrations_dir: Path | None) -> None:
    """
    Apply all pending migrations.

    Reads the last applied version from the ledger table (creating it on
    first run), then applies every migration with a higher version in
    ascending order. Stops at the first failure.

    Examples:

        \b
        # Apply pending migrations using the config file
        sql-migrator migrate

        \b
        # Migrate a specific SQLite database and directory
        sql-migrator migrate --dsn app.db --dir db/migrations
    """
    config = _apply_overrides(ctx.obj["config"], dsn, migrations_dir)
    handler = MigrateHandler(config, console)

    try:
        applied = handler.migrate()
    except MigratorError:
        sys.exit(1)

    display_migrate_results(applied, console)


@cli.command()
@dsn_option
@dir_option
@click.pass_context
def status(ctx: click.Context, dsn: str | None, migrations_dir: Path | None) -> None:
    """
    Show which migrations are applied, pending or skipped.

    Examples:

        \b
        sql-migrator status
    """
    config = _apply_overrides(ctx.obj["config"], dsn, migrations_dir)
    handler = MigrateHandler(config, console)

    try:
        statuses = handler.status()
    except MigratorError:
        sys.exit(1)

    if not statuses:
        console.print("No migrations found.")
        return

    display_status_table(statuses, console)


@cli.command()
@click.argument("name")
@dir_option
@click.pass_context
def new(ctx: click.Context, name: str, migrations_dir: Path | None) -> None:
    """
    Create a new empty migration file with the next version.

    Examples:

        \b
        # Creates e.g. migrations/3_add-orders-table.sql
        sql-migrator new add-orders-table
    """
    config = ctx.obj["config"]
    handler = NewHandler(config, console)

    try:
        path = handler.create(name, migrations_dir.resolve() if migrations_dir else None)
    except (ValueError, MigratorError):
        sys.exit(1)

    display_new_migration(path, console)


@cli.command()
@click.option(
    "--path",
    "target",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the config file (default: $SQL_MIGRATOR_CONFIG or ./sql-migrator.toml)",
)
@click.option("--driver", default=None, help="DB-API driver module name")
@dsn_option
@click.option("--dir", "migrations_dir", default=None, help="Migrations directory")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file without asking")
def init(
    target: Path | None,
    driver: str | None,
    dsn: str | None,
    migrations_dir: str | None,
    force: bool,
) -> None:
    """
    Write a starter configuration file.

    Examples:

        \b
        sql-migrator init --dsn app.db --dir db/migrations
    """
    config_path = expand_path(str(target)) if target else get_config_path()

    if config_path.exists() and not force:
        if not prompt_confirm(f"{config_path} already exists. Overwrite?", default=False):
            console.print("Init cancelled.")
            return

    data = create_default_config().model_dump(mode="json")
    if driver is not None:
        data["database"]["driver"] = driver
    if dsn is not None:
        data["database"]["dsn"] = dsn
    if migrations_dir is not None:
        data["migrations"]["directory"] = migrations_dir

    try:
        Config.model_validate(data).save(config_path)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] Could not write config: {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Wrote configuration to [cyan]{config_path}[/cyan]")


if __name__ == "__main__":
    cli()
