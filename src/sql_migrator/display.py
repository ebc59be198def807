"""Display functions for SQL-Migrator CLI output."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .constants import MigrationState
from .migrator import MigrationStatus
from .scanner import Migration


def display_migrate_results(applied: list[Migration], console: Console) -> None:
    """
    Display the migrations applied by a run.

    Args:
        applied: Migrations applied in order
        console: Rich console instance for output
    """
    if not applied:
        console.print("[blue]✓[/blue] Database is up to date, nothing to apply.")
        return

    table = Table(title="Applied Migrations")
    table.add_column("Version", style="cyan", justify="right")
    table.add_column("Name", style="magenta")
    table.add_column("File")

    for migration in applied:
        table.add_row(str(migration.version), migration.name, migration.filename)

    console.print(table)
    console.print(f"[green]✓[/green] Applied {len(applied)} migration(s)")


def display_status_table(statuses: list[MigrationStatus], console: Console) -> None:
    """
    Display migration status in a table.

    Args:
        statuses: Status entries ordered by version
        console: Rich console instance for output
    """
    table = Table(title="Migration Status")
    table.add_column("Version", style="cyan", justify="right")
    table.add_column("Name", style="magenta")
    table.add_column("State")
    table.add_column("Executed", style="yellow")

    for status in statuses:
        if status.state == MigrationState.APPLIED:
            state_text = "[green]✓ Applied[/green]"
        elif status.state == MigrationState.PENDING:
            state_text = "[blue]… Pending[/blue]"
        elif status.state == MigrationState.SKIPPED:
            state_text = "[yellow]! Skipped[/yellow]"
        else:
            state_text = "[red]✗ File missing[/red]"

        executed = status.ledger_row.executed_at.strftime("%Y-%m-%d %H:%M") if status.ledger_row else "N/A"
        table.add_row(str(status.version), status.name, state_text, executed)

    console.print(table)

    skipped = [s for s in statuses if s.state == MigrationState.SKIPPED]
    if skipped:
        versions = ", ".join(str(s.version) for s in skipped)
        console.print(
            Panel(
                f"[yellow]Warning:[/yellow] migration(s) {versions} are older than the last applied "
                "version and will never be applied by migrate.\n"
                "Give them a version above the latest one to apply them.",
                title="Gap Warning",
                border_style="yellow",
            )
        )


def display_new_migration(path: Path, console: Console) -> None:
    """
    Display the location of a newly created migration.

    Args:
        path: Created migration file
        console: Rich console instance for output
    """
    console.print(f"[green]✓[/green] Created migration: [cyan]{path}[/cyan]")
