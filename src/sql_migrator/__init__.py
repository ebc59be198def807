"""SQL-Migrator: apply versioned SQL migration scripts to a relational database."""

__version__ = "0.1.0"

from .database import Database, DBAPIDatabase, connect, connect_sqlite
from .errors import (
    ConfigError,
    DiscoveryError,
    LedgerError,
    MigrationExecutionError,
    MigratorError,
)
from .migrator import MigrationStatus, Migrator, migrate
from .scanner import Migration

__all__ = [
    "__version__",
    "ConfigError",
    "Database",
    "DBAPIDatabase",
    "DiscoveryError",
    "LedgerError",
    "Migration",
    "MigrationExecutionError",
    "MigrationStatus",
    "Migrator",
    "MigratorError",
    "connect",
    "connect_sqlite",
    "migrate",
]
