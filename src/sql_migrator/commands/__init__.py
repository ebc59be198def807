"""Command handlers for SQL-Migrator CLI."""

from .migrate import MigrateHandler
from .new import NewHandler

__all__ = ["MigrateHandler", "NewHandler"]
