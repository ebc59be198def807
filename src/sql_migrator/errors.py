"""Exception hierarchy for SQL-Migrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import ExecutionPhase

if TYPE_CHECKING:
    from .scanner import Migration


class MigratorError(Exception):
    """Base class for every error raised by a migration run."""

    pass


class ConfigError(MigratorError):
    """Raised when configuration cannot be loaded or validated."""

    pass


class DiscoveryError(MigratorError):
    """
    Raised when the migrations directory cannot be scanned.

    Raised for an unreadable directory, a file that is not a SQL script,
    a malformed filename, an unparsable version or a duplicated version.
    Any of these invalidates the whole directory.
    """

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message)
        self.filename = filename


class LedgerError(MigratorError):
    """Raised when the ledger table cannot be created or queried."""

    pass


class MigrationExecutionError(MigratorError):
    """
    Raised when a single migration cannot be applied.

    Attributes:
        migration: Migration that failed
        phase: Phase of execution the failure happened in
    """

    def __init__(self, message: str, migration: "Migration", phase: ExecutionPhase):
        super().__init__(message)
        self.migration = migration
        self.phase = phase
