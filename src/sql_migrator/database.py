"""Database access seam for SQL-Migrator.

Every component receives a ``Database`` explicitly. ``DBAPIDatabase``
adapts any DB-API 2.0 connection to it.
"""

import importlib
import logging
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from .constants import ParamStyle
from .errors import ConfigError, LedgerError

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Mapping[str, Any]


class Database(Protocol):
    """Transactional database handle used by the ledger and executor."""

    paramstyle: ParamStyle

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def execute(self, sql: str, params: Params | None = None) -> None: ...

    def fetchone(self, sql: str, params: Params | None = None) -> tuple[Any, ...] | None: ...

    def fetchall(self, sql: str, params: Params | None = None) -> list[tuple[Any, ...]]: ...


class DBAPIDatabase:
    """Database backed by a DB-API 2.0 connection."""

    def __init__(
        self,
        conn: Any,
        paramstyle: ParamStyle | str = ParamStyle.QMARK,
        begin_statement: str | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            conn: Open DB-API 2.0 connection
            paramstyle: Parameter marker style understood by the driver
            begin_statement: Statement issued by begin(), or None when the
                driver opens transactions implicitly
        """
        self.conn = conn
        self.paramstyle = ParamStyle(paramstyle)
        self.begin_statement = begin_statement

    @contextmanager
    def cursor(self) -> Iterator[Any]:
        cur = self.conn.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def begin(self) -> None:
        if self.begin_statement:
            self.execute(self.begin_statement)

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    def execute(self, sql: str, params: Params | None = None) -> None:
        with self.cursor() as cur:
            _run(cur, sql, params)

    def fetchone(self, sql: str, params: Params | None = None) -> tuple[Any, ...] | None:
        with self.cursor() as cur:
            _run(cur, sql, params)
            row = cur.fetchone()
            return tuple(row) if row is not None else None

    def fetchall(self, sql: str, params: Params | None = None) -> list[tuple[Any, ...]]:
        with self.cursor() as cur:
            _run(cur, sql, params)
            return [tuple(r) for r in cur.fetchall()]

    def close(self) -> None:
        self.conn.close()


def _run(cur: Any, sql: str, params: Params | None) -> None:
    # Some drivers apply %-formatting whenever params are given, even empty ones
    if params is None:
        cur.execute(sql)
    else:
        cur.execute(sql, params)


def connect_sqlite(path: Path | str, **connect_args: Any) -> DBAPIDatabase:
    """
    Open a SQLite database for migrating.

    The connection runs in autocommit mode and transactions are opened with an
    explicit BEGIN, so DDL statements take part in the migration transaction.
    An ``isolation_level`` in ``connect_args`` is overridden for that reason.

    Args:
        path: Database file path, or ":memory:"
        **connect_args: Extra keyword arguments for sqlite3.connect (e.g. timeout)

    Returns:
        DBAPIDatabase wrapping the connection

    Raises:
        ConfigError: If connect_args are not accepted by sqlite3.connect
        LedgerError: If the database cannot be opened
    """
    connect_args = {**connect_args, "isolation_level": None}
    try:
        conn = sqlite3.connect(str(path), **connect_args)
    except TypeError as e:
        raise ConfigError(f"Invalid sqlite3 connect_args: {e}") from e
    except (sqlite3.Error, OSError) as e:
        raise LedgerError(f"could not connect to database {path}: {e}") from e
    return DBAPIDatabase(conn, ParamStyle.QMARK, begin_statement="BEGIN")


def connect(driver: str, dsn: str | None = None, connect_args: Mapping[str, Any] | None = None) -> DBAPIDatabase:
    """
    Open a database connection through a DB-API 2.0 driver module.

    Args:
        driver: Importable driver module name (e.g. "sqlite3", "psycopg2", "pymysql")
        dsn: Positional connection argument passed to the driver's connect()
        connect_args: Keyword arguments passed to the driver's connect()

    Returns:
        DBAPIDatabase using the driver's declared paramstyle

    Raises:
        ConfigError: If the driver cannot be imported or is not DB-API compliant
        LedgerError: If the driver fails to open the connection
    """
    if driver == "sqlite3":
        return connect_sqlite(dsn or ":memory:", **dict(connect_args or {}))

    try:
        module = importlib.import_module(driver)
    except ImportError as e:
        raise ConfigError(f"Database driver '{driver}' is not installed: {e}") from e

    if not hasattr(module, "connect"):
        raise ConfigError(f"Module '{driver}' is not a DB-API 2.0 driver (no connect function)")

    try:
        paramstyle = ParamStyle(getattr(module, "paramstyle", ParamStyle.QMARK.value))
    except ValueError as e:
        raise ConfigError(f"Driver '{driver}' declares an unknown paramstyle: {e}") from e

    args = [dsn] if dsn else []
    logger.debug("Connecting with driver %s (paramstyle %s)", driver, paramstyle.value)
    try:
        conn = module.connect(*args, **dict(connect_args or {}))
    except Exception as e:
        raise LedgerError(f"could not connect to database with driver {driver}: {e}") from e
    return DBAPIDatabase(conn, paramstyle)


def placeholders(paramstyle: ParamStyle, values: Mapping[str, Any]) -> tuple[str, Params]:
    """
    Render parameter markers and the matching parameter container.

    Args:
        paramstyle: Driver parameter style
        values: Ordered mapping of column name to value

    Returns:
        Tuple of (comma separated markers, params to pass to execute)

    Examples:
        >>> placeholders(ParamStyle.QMARK, {"version": 1, "title": "a"})
        ('?, ?', (1, 'a'))
        >>> placeholders(ParamStyle.PYFORMAT, {"version": 1})
        ('%(version)s', {'version': 1})
    """
    names = list(values)
    if paramstyle == ParamStyle.QMARK:
        markers = ["?"] * len(names)
    elif paramstyle == ParamStyle.NUMERIC:
        markers = [f":{i}" for i in range(1, len(names) + 1)]
    elif paramstyle == ParamStyle.FORMAT:
        markers = ["%s"] * len(names)
    elif paramstyle == ParamStyle.NAMED:
        return ", ".join(f":{n}" for n in names), dict(values)
    else:
        return ", ".join(f"%({n})s" for n in names), dict(values)

    return ", ".join(markers), tuple(values.values())
