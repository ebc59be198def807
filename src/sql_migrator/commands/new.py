"""New-migration command handler for SQL-Migrator."""

from pathlib import Path

from pathvalidate import ValidationError, validate_filename
from rich.console import Console
from rich.markup import escape

from ..config import Config
from ..constants import SQL_MARKER, VERSION_SEPARATOR
from ..error_guidance import report_error
from ..errors import DiscoveryError
from ..scanner import next_version
from ..utils import ensure_dir

MIGRATION_TEMPLATE = "-- Migration {version}: {name}\n\n"


class NewHandler:
    """Handles creation of new migration files."""

    def __init__(self, config: Config, console: Console):
        """
        Initialize new-migration handler.

        Args:
            config: Application configuration
            console: Rich console for output
        """
        self.config = config
        self.console = console

    def create(self, name: str, migrations_dir: Path | None = None) -> Path:
        """
        Create an empty migration file with the next free version.

        Args:
            name: Migration name (no underscore, no .sql marker)
            migrations_dir: Directory override (default: from config)

        Returns:
            Path to the created file

        Raises:
            ValueError: If the name cannot be used in a migration filename
            DiscoveryError: If the existing directory holds an invalid entry
        """
        directory = migrations_dir or self.config.migrations_dir

        if not name or VERSION_SEPARATOR in name or SQL_MARKER in name:
            self.console.print(
                f"[red]Error:[/red] Invalid migration name '{escape(name)}': it must be non-empty and "
                f"contain neither '{VERSION_SEPARATOR}' nor '{SQL_MARKER}'"
            )
            raise ValueError(f"Invalid migration name: {name}")

        try:
            version = next_version(directory)
        except DiscoveryError as e:
            report_error(self.console, "New migration", e, directory)
            raise

        filename = f"{version}{VERSION_SEPARATOR}{name}{SQL_MARKER}"
        try:
            validate_filename(filename)
        except ValidationError as e:
            self.console.print(f"[red]Error:[/red] Invalid migration name '{escape(name)}': {escape(str(e))}")
            raise ValueError(f"Invalid migration name: {name}") from e

        path = ensure_dir(directory) / filename
        path.write_text(MIGRATION_TEMPLATE.format(version=version, name=name), encoding="utf-8")
        return path
