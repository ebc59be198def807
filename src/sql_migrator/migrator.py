"""Migration orchestration: bring a database up to the latest script version."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_LEDGER_TABLE, STATEMENT_SEPARATOR, MigrationState
from .database import Database
from .executor import MigrationExecutor
from .ledger import LedgerRow, VersionLedger
from .scanner import Migration, scan_migrations_dir
from .utils import InfoLogger, default_info_logger

logger = logging.getLogger(__name__)


@dataclass
class MigrationStatus:
    """State of one version as seen from both the directory and the ledger."""

    version: int
    name: str
    state: MigrationState
    migration: Migration | None = None
    ledger_row: LedgerRow | None = None


class Migrator:
    """Applies pending migrations from a directory to a database."""

    def __init__(
        self,
        db: Database,
        migrations_dir: Path | str,
        ledger_table: str = DEFAULT_LEDGER_TABLE,
        info_logger: InfoLogger | None = None,
        statement_separator: str = STATEMENT_SEPARATOR,
        respect_quotes: bool = False,
    ) -> None:
        """
        Initialize the migrator.

        Args:
            db: Target database
            migrations_dir: Directory of ``<version>_<name>.sql`` scripts
            ledger_table: Name of the ledger table
            info_logger: Logging collaborator taking a %-style template and arguments
            statement_separator: Character separating statements in a script
            respect_quotes: Whether separators inside quoted literals are kept
        """
        self.db = db
        self.migrations_dir = Path(migrations_dir)
        self.info_logger = info_logger or default_info_logger
        self.ledger = VersionLedger(db, ledger_table, self.info_logger)
        self.executor = MigrationExecutor(
            db,
            self.ledger,
            self.info_logger,
            statement_separator=statement_separator,
            respect_quotes=respect_quotes,
        )

    def migrate(self) -> list[Migration]:
        """
        Apply every discovered migration above the last applied version.

        Migrations run one at a time in ascending version order, each in its
        own transaction. The run stops at the first failure; migrations
        committed before it stay committed.

        Returns:
            Migrations applied by this run (empty when already up to date)

        Raises:
            LedgerError: If the ledger cannot be created or read
            DiscoveryError: If the migrations directory is invalid
            MigrationExecutionError: If a migration fails
        """
        if not self.ledger.table_exists():
            self.ledger.ensure_table()

        last_version = self.ledger.last_applied_version()

        versions, migrations = scan_migrations_dir(self.migrations_dir)
        if not versions:
            self.info_logger("no migrations found")
            return []

        if last_version == versions[-1]:
            self.info_logger("migrations up-to-date (last version: %d)", last_version)
            return []

        if last_version > versions[-1]:
            logger.warning(
                "Ledger version %d is ahead of the newest migration file (version %d)",
                last_version,
                versions[-1],
            )

        applied: list[Migration] = []
        for version in versions:
            if version <= last_version:
                continue
            migration = migrations[version]
            self.executor.execute(migration)
            applied.append(migration)

        return applied

    def status(self) -> list[MigrationStatus]:
        """
        Compare the migrations directory with the ledger.

        Does not create the ledger table. Versions below the last applied
        one that have no ledger row are reported as skipped since
        ``migrate`` never applies them.

        Returns:
            Status entries ordered by version

        Raises:
            LedgerError: If the ledger cannot be read
            DiscoveryError: If the migrations directory is invalid
        """
        rows = self.ledger.applied_rows() if self.ledger.table_exists() else []
        recorded = {row.version: row for row in rows}
        last_version = max(recorded, default=0)

        _, migrations = scan_migrations_dir(self.migrations_dir)

        statuses: list[MigrationStatus] = []
        for version in sorted(set(migrations) | set(recorded)):
            migration = migrations.get(version)
            row = recorded.get(version)
            if migration is not None:
                if row is not None:
                    state = MigrationState.APPLIED
                elif version > last_version:
                    state = MigrationState.PENDING
                else:
                    state = MigrationState.SKIPPED
                statuses.append(MigrationStatus(version, migration.name, state, migration, row))
            elif row is not None:
                statuses.append(MigrationStatus(version, row.title, MigrationState.MISSING, ledger_row=row))

        return statuses


def migrate(db: Database, migrations_dir: Path | str, **options) -> list[Migration]:
    """
    Apply pending migrations from a directory to a database.

    Args:
        db: Target database (see ``database.connect_sqlite`` / ``DBAPIDatabase``)
        migrations_dir: Directory of ``<version>_<name>.sql`` scripts
        **options: Keyword arguments for ``Migrator``

    Returns:
        Migrations applied by this run

    Example::

        from sql_migrator import connect_sqlite, migrate

        db = connect_sqlite("app.db")
        migrate(db, "migrations")
    """
    return Migrator(db, migrations_dir, **options).migrate()
