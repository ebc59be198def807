"""Actionable error guidance for common failure scenarios."""

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .constants import ExecutionPhase
from .errors import DiscoveryError, LedgerError, MigrationExecutionError, MigratorError


@dataclass
class ErrorGuidance:
    """Structured error guidance with checks and suggestions."""

    title: str
    checks: list[str]  # Things to check
    fixes: list[str]  # How to fix
    examples: list[str] | None = None  # Example commands


class GuidanceProvider:
    """Provides context-aware guidance for errors."""

    @staticmethod
    def get_invalid_migration_file(filename: str | None, migrations_dir: Path) -> ErrorGuidance:
        """Guidance when the migrations directory holds an invalid entry."""
        checks = [
            "Every file must be named <version>_<name>.sql, e.g. 1_create-users.sql",
            "The name part must not contain another underscore",
            "The version must be a positive integer and unique in the directory",
        ]
        fixes = ["Rename the offending file, or move it into a subdirectory (subdirectories are ignored)"]
        if filename:
            fixes.insert(0, f"Offending file: {migrations_dir / filename}")

        return ErrorGuidance(
            title="Invalid migrations directory",
            checks=checks,
            fixes=fixes,
            examples=[f"ls -la {migrations_dir}", "sql-migrator new create-users"],
        )

    @staticmethod
    def get_database_unavailable(error: str) -> ErrorGuidance:
        """Guidance when the ledger cannot be created or read."""
        fixes = ["Verify the database section of the configuration file"]
        lowered = error.lower()
        if "permission" in lowered or "denied" in lowered or "readonly" in lowered:
            fixes.append("Grant the migration user CREATE and INSERT privileges")
        elif "connect" in lowered or "timeout" in lowered:
            fixes.append("Check that the database server is running and reachable")

        return ErrorGuidance(
            title="Could not access the migration ledger",
            checks=[
                "Database server is reachable from this host",
                "Credentials in the DSN or connect_args are correct",
            ],
            fixes=fixes,
        )

    @staticmethod
    def get_migration_failed(migration_name: str, phase: ExecutionPhase) -> ErrorGuidance:
        """Guidance when a migration could not be applied."""
        checks = [f"Review the SQL in migration {migration_name}"]
        if phase == ExecutionPhase.STATEMENT:
            checks.append("A ';' inside a string literal splits the statement; enable respect_quotes")
        elif phase == ExecutionPhase.LEDGER:
            checks.append("Another runner may have applied the same version concurrently")

        return ErrorGuidance(
            title=f"Migration {migration_name} failed during {phase.value}",
            checks=checks,
            fixes=[
                "No ledger row was written; fix the script and run migrate again",
                "Some engines (e.g. MySQL) commit DDL implicitly: verify no partial schema change remains",
            ],
            examples=["sql-migrator status"],
        )

    @classmethod
    def for_error(cls, error: MigratorError, migrations_dir: Path) -> ErrorGuidance | None:
        """Pick guidance for a migrator error, if any applies."""
        if isinstance(error, DiscoveryError):
            return cls.get_invalid_migration_file(error.filename, migrations_dir)
        if isinstance(error, LedgerError):
            return cls.get_database_unavailable(str(error))
        if isinstance(error, MigrationExecutionError):
            return cls.get_migration_failed(error.migration.name, error.phase)
        return None

    @staticmethod
    def format_guidance(guidance: ErrorGuidance) -> str:
        """Format guidance as rich-compatible string."""
        lines = [f"[bold yellow]{guidance.title}[/bold yellow]\n"]

        if guidance.checks:
            lines.append("[cyan]Checks:[/cyan]")
            for check in guidance.checks:
                lines.append(f"  • {check}")
            lines.append("")

        if guidance.fixes:
            lines.append("[cyan]How to fix:[/cyan]")
            for fix in guidance.fixes:
                lines.append(f"  • {fix}")
            lines.append("")

        if guidance.examples:
            lines.append("[cyan]Try these commands:[/cyan]")
            for example in guidance.examples:
                lines.append(f"  $ {example}")

        return "\n".join(lines)


def report_error(console: Console, prefix: str, error: MigratorError, migrations_dir: Path) -> None:
    """
    Print an error followed by any guidance that applies to it.

    Args:
        console: Rich console for output
        prefix: Operation the error happened in
        error: Error to report
        migrations_dir: Migrations directory in use
    """
    console.print(f"[red]Error:[/red] {prefix}: {escape(str(error))}")
    guidance = GuidanceProvider.for_error(error, migrations_dir)
    if guidance:
        console.print()
        console.print(GuidanceProvider.format_guidance(guidance))
