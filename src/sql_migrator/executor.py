"""Transactional execution of a single migration.

Each migration runs in its own transaction together with the insert of its
ledger row. Engines that commit DDL implicitly (MySQL/MariaDB ``CREATE``,
``ALTER`` and ``DROP``; Oracle DDL) cannot roll such statements back, so a
failure after one of them may leave partial schema changes behind. No ledger
row is written in that case and the run still fails. SQLite and PostgreSQL
roll DDL back with the rest of the transaction.
"""

import logging

from .constants import STATEMENT_SEPARATOR, ExecutionPhase
from .database import Database
from .errors import MigrationExecutionError
from .ledger import VersionLedger
from .scanner import Migration
from .utils import InfoLogger, default_info_logger

logger = logging.getLogger(__name__)

_QUOTES = ("'", '"')


def split_statements(sql: str, separator: str = STATEMENT_SEPARATOR, respect_quotes: bool = False) -> list[str]:
    """
    Split migration text into individual statements.

    The default split is naive: every separator character ends a statement,
    even inside a string literal. With ``respect_quotes`` the separator is
    ignored inside single or double quoted literals (a doubled quote is an
    escaped quote) and inside ``--`` and ``/* */`` comments. Comments stay in
    the statement text. Whitespace-only fragments are dropped either way.

    Args:
        sql: Full migration text
        separator: Single statement separator character
        respect_quotes: Whether to keep separators inside quoted literals

    Returns:
        Non-empty statements in file order

    Examples:
        >>> split_statements("CREATE TABLE a (id INT);\\nINSERT INTO a VALUES (1);\\n")
        ['CREATE TABLE a (id INT)', 'INSERT INTO a VALUES (1)']
    """
    if respect_quotes:
        fragments = _split_outside_literals(sql, separator)
    else:
        fragments = sql.split(separator)

    return [f.strip() for f in fragments if f.strip()]


def _split_outside_literals(sql: str, separator: str) -> list[str]:
    fragments: list[str] = []
    start = 0
    index = 0
    quote: str | None = None
    while index < len(sql):
        char = sql[index]
        if quote is not None:
            # A doubled quote closes and reopens the literal
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif sql.startswith("--", index):
            end = sql.find("\n", index)
            index = len(sql) if end == -1 else end
            continue
        elif sql.startswith("/*", index):
            end = sql.find("*/", index + 2)
            index = len(sql) if end == -1 else end + 2
            continue
        elif char == separator:
            fragments.append(sql[start:index])
            start = index + 1
        index += 1
    fragments.append(sql[start:])
    return fragments


class MigrationExecutor:
    """Applies one migration at a time and records it in the ledger."""

    def __init__(
        self,
        db: Database,
        ledger: VersionLedger,
        info_logger: InfoLogger | None = None,
        statement_separator: str = STATEMENT_SEPARATOR,
        respect_quotes: bool = False,
    ) -> None:
        """
        Initialize the executor.

        Args:
            db: Target database
            ledger: Ledger the applied migration is recorded in
            info_logger: Logging collaborator
            statement_separator: Character separating statements in a script
            respect_quotes: Whether separators inside quoted literals are kept
        """
        self.db = db
        self.ledger = ledger
        self.info_logger = info_logger or default_info_logger
        self.statement_separator = statement_separator
        self.respect_quotes = respect_quotes

    def execute(self, migration: Migration) -> None:
        """
        Apply a migration transactionally.

        Args:
            migration: Migration to apply

        Raises:
            MigrationExecutionError: If reading, any statement, the ledger
                insert or the commit fails. The transaction is rolled back.
        """
        try:
            sql = migration.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise MigrationExecutionError(
                f"could not read migration file {migration.name}, error: {e}",
                migration,
                ExecutionPhase.READ,
            ) from e

        statements = split_statements(sql, self.statement_separator, self.respect_quotes)

        try:
            self.db.begin()
        except Exception as e:
            raise MigrationExecutionError(
                f"could not initiate transaction for migration {migration.name}, error: {e}",
                migration,
                ExecutionPhase.BEGIN,
            ) from e

        for index, statement in enumerate(statements, start=1):
            try:
                self.db.execute(statement)
            except Exception as e:
                self._rollback(migration)
                raise MigrationExecutionError(
                    f"error during migration {migration.name} (statement {index}), rolled back, cause: {e}",
                    migration,
                    ExecutionPhase.STATEMENT,
                ) from e

        try:
            self.ledger.record_applied(migration.version, migration.name)
        except Exception as e:
            self._rollback(migration)
            raise MigrationExecutionError(
                f"error during execution of {self.ledger.table_name} table: {e}",
                migration,
                ExecutionPhase.LEDGER,
            ) from e

        try:
            self.db.commit()
        except Exception as e:
            self._rollback(migration)
            raise MigrationExecutionError(
                f"error during commit migration {migration.name}, rolled back, cause: {e}",
                migration,
                ExecutionPhase.COMMIT,
            ) from e

        self.info_logger("successfully migrated: %s", migration.name)

    def _rollback(self, migration: Migration) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            logger.warning("Rollback of migration %s failed: %s", migration.name, e)
