"""Migrate and status command handlers for SQL-Migrator."""

from collections.abc import Callable
from typing import TypeVar

from rich.console import Console

from ..config import Config
from ..database import DBAPIDatabase, connect
from ..error_guidance import report_error
from ..errors import MigratorError
from ..migrator import MigrationStatus, Migrator
from ..scanner import Migration
from ..utils import InfoLogger

T = TypeVar("T")


class MigrateHandler:
    """Handles migrate and status logic."""

    def __init__(self, config: Config, console: Console, info_logger: InfoLogger | None = None):
        """
        Initialize migrate handler.

        Args:
            config: Application configuration
            console: Rich console for output
            info_logger: Logging collaborator passed to the migrator
        """
        self.config = config
        self.console = console
        self.info_logger = info_logger

    def _open_database(self) -> DBAPIDatabase:
        database = self.config.database
        return connect(database.driver, database.dsn, database.connect_args)

    def _run(self, prefix: str, operation: Callable[[Migrator], T]) -> T:
        try:
            db = self._open_database()
        except MigratorError as e:
            report_error(self.console, prefix, e, self.config.migrations_dir)
            raise

        try:
            migrator = Migrator(
                db,
                self.config.migrations_dir,
                ledger_table=self.config.ledger_table,
                info_logger=self.info_logger,
                statement_separator=self.config.migrations.statement_separator,
                respect_quotes=self.config.migrations.respect_quotes,
            )
            return operation(migrator)
        except MigratorError as e:
            report_error(self.console, prefix, e, self.config.migrations_dir)
            raise
        finally:
            db.close()

    def migrate(self) -> list[Migration]:
        """
        Apply pending migrations.

        Returns:
            Migrations applied by this run

        Raises:
            MigratorError: If the run fails (already reported to the console)
        """
        return self._run("Migration", lambda migrator: migrator.migrate())

    def status(self) -> list[MigrationStatus]:
        """
        Compare the migrations directory with the ledger.

        Returns:
            Status entries ordered by version

        Raises:
            MigratorError: If the status cannot be determined (already reported)
        """
        return self._run("Status", lambda migrator: migrator.status())
