"""Version ledger kept in the target database."""

import logging
from datetime import datetime

from pydantic import BaseModel

from .constants import DEFAULT_LEDGER_TABLE, NO_VERSION
from .database import Database, placeholders
from .errors import LedgerError
from .utils import InfoLogger, default_info_logger, is_valid_identifier

logger = logging.getLogger(__name__)


class LedgerRow(BaseModel):
    """A successfully applied migration as recorded in the ledger."""

    version: int
    title: str
    executed_at: datetime


class VersionLedger:
    """Reads and writes the migration ledger table."""

    def __init__(
        self,
        db: Database,
        table_name: str = DEFAULT_LEDGER_TABLE,
        info_logger: InfoLogger | None = None,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            db: Target database
            table_name: Name of the ledger table
            info_logger: Logging collaborator

        Raises:
            LedgerError: If the table name is not a plain SQL identifier
        """
        if not is_valid_identifier(table_name):
            raise LedgerError(f"invalid ledger table name: {table_name!r}")
        self.db = db
        self.table_name = table_name
        self.info_logger = info_logger or default_info_logger

    def table_exists(self) -> bool:
        """
        Check whether the ledger table exists.

        Any error from the probe query counts as absence.
        """
        try:
            self.db.fetchone(f"SELECT * FROM {self.table_name} LIMIT 1")
        except Exception as e:
            logger.debug("Ledger probe on %s failed: %s", self.table_name, e)
            self._reset_after_probe()
            return False
        return True

    def _reset_after_probe(self) -> None:
        # A failed query leaves some drivers inside an aborted transaction
        try:
            self.db.rollback()
        except Exception as e:
            logger.debug("Rollback after ledger probe failed: %s", e)

    def ensure_table(self) -> None:
        """
        Create the ledger table if it does not exist.

        Raises:
            LedgerError: If the table cannot be created
        """
        try:
            self.db.execute(
                f"CREATE TABLE IF NOT EXISTS {self.table_name} ("
                "version INT NOT NULL, "
                "title VARCHAR(255) NOT NULL, "
                "executed_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP, "
                "UNIQUE(version))"
            )
            self.db.commit()
        except Exception as e:
            raise LedgerError(f"could not create migrator table: {e}") from e

    def last_applied_version(self) -> int:
        """
        Get the highest recorded version.

        Returns:
            Last applied version, or 0 if no migration was ever applied

        Raises:
            LedgerError: If the query fails
        """
        try:
            row = self.db.fetchone(f"SELECT version FROM {self.table_name} ORDER BY version DESC LIMIT 1")
        except Exception as e:
            raise LedgerError(f"error checking version: {e}") from e

        if row is None:
            self.info_logger("no previous migration versions detected")
            return NO_VERSION

        last_version = int(row[0])
        self.info_logger("last migration version: %d", last_version)
        return last_version

    def record_applied(self, version: int, name: str) -> None:
        """
        Insert a ledger row.

        Must run inside the transaction that applied the migration so the
        schema change and its record commit together. Driver errors propagate
        unchanged for the executor to wrap.

        Args:
            version: Migration version
            name: Migration name
        """
        markers, params = placeholders(self.db.paramstyle, {"version": version, "title": name})
        self.db.execute(f"INSERT INTO {self.table_name} (version, title) VALUES ({markers})", params)

    def applied_rows(self) -> list[LedgerRow]:
        """
        Get every recorded migration ordered by version.

        Raises:
            LedgerError: If the query fails
        """
        try:
            rows = self.db.fetchall(
                f"SELECT version, title, executed_at FROM {self.table_name} ORDER BY version"
            )
        except Exception as e:
            raise LedgerError(f"error reading migrator table: {e}") from e
        return [LedgerRow(version=r[0], title=r[1], executed_at=r[2]) for r in rows]
