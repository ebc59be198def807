"""Constants used throughout SQL-Migrator."""

from enum import Enum

# Ledger table created in the target database to track applied migrations
DEFAULT_LEDGER_TABLE = "gomigrator_version"

# Migration filename convention: <version>_<name>.sql
SQL_MARKER = ".sql"
VERSION_SEPARATOR = "_"

# Statement separator inside migration scripts
STATEMENT_SEPARATOR = ";"

# Version reported when the ledger holds no rows
NO_VERSION = 0

# Config lookup
CONFIG_ENV_VAR = "SQL_MIGRATOR_CONFIG"
DEFAULT_CONFIG_FILENAME = "sql-migrator.toml"

# Logger name used by the default info logger
LOGGER_NAME = "sql_migrator"


class ParamStyle(str, Enum):
    """DB-API 2.0 parameter marker styles.

    Attributes:
        QMARK: ``WHERE a = ?``
        NUMERIC: ``WHERE a = :1``
        NAMED: ``WHERE a = :a``
        FORMAT: ``WHERE a = %s``
        PYFORMAT: ``WHERE a = %(a)s``
    """

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED = "named"
    FORMAT = "format"
    PYFORMAT = "pyformat"


class ExecutionPhase(str, Enum):
    """Phase of a migration run an execution error originated from."""

    READ = "read"
    BEGIN = "begin"
    STATEMENT = "statement"
    LEDGER = "ledger"
    COMMIT = "commit"


class MigrationState(str, Enum):
    """State of a migration as reported by ``status``.

    Attributes:
        APPLIED: Ledger row exists for the version
        PENDING: Version is above the last applied one and will run next
        SKIPPED: Version is below the last applied one but has no ledger row
        MISSING: Ledger row exists but no file was discovered for it
    """

    APPLIED = "applied"
    PENDING = "pending"
    SKIPPED = "skipped"
    MISSING = "missing"
