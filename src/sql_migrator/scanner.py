"""Discovery of versioned SQL migration files."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .constants import SQL_MARKER, VERSION_SEPARATOR
from .errors import DiscoveryError

logger = logging.getLogger(__name__)


class Migration(BaseModel):
    """A discovered migration script.

    The version orders migrations; the name is only used for logging and
    for the ledger row.
    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(gt=0)
    name: str
    path: Path

    @property
    def filename(self) -> str:
        """Filename of the migration script."""
        return self.path.name


def parse_migration_filename(filename: str, directory: Path) -> Migration:
    """
    Parse a ``<version>_<name>.sql`` filename into a Migration.

    Args:
        filename: Directory entry name
        directory: Directory containing the file

    Returns:
        Migration descriptor

    Raises:
        DiscoveryError: If the filename does not follow the convention
    """
    if SQL_MARKER not in filename:
        raise DiscoveryError(f"file is not sql file: {filename}", filename)

    parts = filename.replace(SQL_MARKER, "").split(VERSION_SEPARATOR)
    if len(parts) != 2:
        raise DiscoveryError(
            f"illegal migration filename {filename}, can only contain {VERSION_SEPARATOR} "
            f"to divide version and name like 1{VERSION_SEPARATOR}create-user-table{SQL_MARKER}",
            filename,
        )

    version_token, name = parts
    # int() alone would also accept signs, whitespace and non-ASCII digits
    if not (version_token.isascii() and version_token.isdigit()) or int(version_token) == 0:
        raise DiscoveryError(
            f"illegal version in filename {filename}, version can only be a single positive "
            f"integer like 1{VERSION_SEPARATOR}create-user-table{SQL_MARKER}",
            filename,
        )

    return Migration(version=int(version_token), name=name, path=directory / filename)


def scan_migrations_dir(migrations_dir: Path) -> tuple[list[int], dict[int, Migration]]:
    """
    Scan a migrations directory.

    Entries that are not regular files, such as subdirectories or FIFOs, are
    skipped. Every regular file must have a well-formed migration filename,
    otherwise the whole scan fails. Two files sharing a
    version are rejected.

    Args:
        migrations_dir: Directory holding the migration scripts

    Returns:
        Tuple of (versions sorted ascending, migrations keyed by version)

    Raises:
        DiscoveryError: If the directory cannot be read or holds an invalid entry
    """
    try:
        entries = sorted(migrations_dir.iterdir())
    except OSError as e:
        raise DiscoveryError(f"could not open migrations directory: {e}") from e

    found: dict[int, Migration] = {}
    for entry in entries:
        if not entry.is_file():
            continue

        migration = parse_migration_filename(entry.name, migrations_dir)
        existing = found.get(migration.version)
        if existing is not None:
            raise DiscoveryError(
                f"duplicate migration version {migration.version}: "
                f"{existing.filename} and {migration.filename}",
                migration.filename,
            )
        found[migration.version] = migration

    logger.debug("Discovered %d migration(s) in %s", len(found), migrations_dir)
    return sorted(found), found


def next_version(migrations_dir: Path) -> int:
    """
    Get the version a new migration in the directory should use.

    Args:
        migrations_dir: Directory holding the migration scripts

    Returns:
        Highest discovered version plus one, or 1 for a missing or empty directory

    Raises:
        DiscoveryError: If the existing directory holds an invalid entry
    """
    if not migrations_dir.exists():
        return 1
    versions, _ = scan_migrations_dir(migrations_dir)
    return versions[-1] + 1 if versions else 1
