"""Tests for the migration orchestrator."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from sql_migrator import migrate
from sql_migrator.constants import ExecutionPhase, MigrationState
from sql_migrator.database import DBAPIDatabase, connect_sqlite
from sql_migrator.errors import DiscoveryError, MigrationExecutionError
from sql_migrator.ledger import VersionLedger
from sql_migrator.migrator import Migrator
from tests.db_helpers import RecordingLogger, ledger_versions, table_names, write_migrations


@pytest.fixture
def db() -> Iterator[DBAPIDatabase]:
    database = connect_sqlite(":memory:")
    yield database
    database.close()


class TestMigrate:
    """Tests for Migrator.migrate."""

    def test_applies_in_version_order(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that migrations run 1, 2, 3 whatever the discovery order."""
        directory = write_migrations(
            tmp_path / "migrations",
            {
                "3_c.sql": "INSERT INTO log (step) VALUES ('c');",
                "1_a.sql": "CREATE TABLE log (id INTEGER PRIMARY KEY AUTOINCREMENT, step TEXT);",
                "2_b.sql": "INSERT INTO log (step) VALUES ('b');",
            },
        )
        logger = RecordingLogger()

        applied = Migrator(db, directory, info_logger=logger).migrate()

        assert [m.version for m in applied] == [1, 2, 3]
        assert ledger_versions(db) == [1, 2, 3]
        assert db.fetchall("SELECT step FROM log ORDER BY id") == [("b",), ("c",)]
        assert logger.messages == [
            "no previous migration versions detected",
            "successfully migrated: a",
            "successfully migrated: b",
            "successfully migrated: c",
        ]

    def test_second_run_is_noop(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that running twice without new files changes nothing."""
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "CREATE TABLE a (id INT);"})
        Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        logger = RecordingLogger()
        applied = Migrator(db, directory, info_logger=logger).migrate()

        assert applied == []
        assert ledger_versions(db) == [1]
        assert logger.messages == [
            "last migration version: 1",
            "migrations up-to-date (last version: 1)",
        ]

    def test_only_newer_versions_applied(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that a later run applies only versions above the last one."""
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "CREATE TABLE a (id INT);"})
        Migrator(db, directory, info_logger=RecordingLogger()).migrate()
        write_migrations(directory, {"2_b.sql": "CREATE TABLE b (id INT);", "3_c.sql": "CREATE TABLE c (id INT);"})

        applied = Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert [m.version for m in applied] == [2, 3]
        assert ledger_versions(db) == [1, 2, 3]

    def test_empty_directory(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that an empty directory is a logged no-op."""
        directory = tmp_path / "migrations"
        directory.mkdir()
        logger = RecordingLogger()

        applied = Migrator(db, directory, info_logger=logger).migrate()

        assert applied == []
        assert ledger_versions(db) == []
        assert "no migrations found" in logger.messages

    def test_creates_ledger_table_on_first_run(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        directory = tmp_path / "migrations"
        directory.mkdir()

        Migrator(db, directory, ledger_table="schema_versions", info_logger=RecordingLogger()).migrate()

        assert "schema_versions" in table_names(db)

    @pytest.mark.parametrize("bad_file", ["abc.sql", "1_2_three.sql", "x_name.sql"])
    def test_malformed_filename_aborts_before_migrating(
        self, db: DBAPIDatabase, tmp_path: Path, bad_file: str
    ) -> None:
        """Test that one malformed filename fails the run with nothing applied."""
        directory = write_migrations(
            tmp_path / "migrations",
            {"1_ok.sql": "CREATE TABLE ok (id INT);", bad_file: "SELECT 1;"},
        )

        with pytest.raises(DiscoveryError):
            Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert "ok" not in table_names(db)
        assert ledger_versions(db) == []

    def test_duplicate_versions_rejected(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that duplicate versions fail the run instead of picking one."""
        directory = write_migrations(
            tmp_path / "migrations",
            {"1_a.sql": "CREATE TABLE a (id INT);", "1_b.sql": "CREATE TABLE b (id INT);"},
        )

        with pytest.raises(DiscoveryError, match="duplicate"):
            Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert ledger_versions(db) == []

    def test_stops_at_first_failure(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that earlier migrations stay committed and later ones never run."""
        directory = write_migrations(
            tmp_path / "migrations",
            {
                "1_a.sql": "CREATE TABLE a (id INT);",
                "2_b.sql": "CREATE TABLE b (id INT);\nINSERT INTO nowhere VALUES (1);",
                "3_c.sql": "CREATE TABLE c (id INT);",
            },
        )

        with pytest.raises(MigrationExecutionError) as exc_info:
            Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert exc_info.value.migration.version == 2
        assert exc_info.value.phase == ExecutionPhase.STATEMENT
        assert ledger_versions(db) == [1]
        tables = table_names(db)
        assert "a" in tables
        assert "b" not in tables
        assert "c" not in tables

    def test_failed_migration_retried_after_fix(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that a fixed migration is applied on the next run."""
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "CREATE TABLE a (id INT"})
        with pytest.raises(MigrationExecutionError):
            Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        write_migrations(directory, {"1_a.sql": "CREATE TABLE a (id INT);"})
        applied = Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert [m.version for m in applied] == [1]

    def test_ledger_ahead_of_directory(
        self, db: DBAPIDatabase, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a ledger newer than every file applies nothing and warns."""
        ledger = VersionLedger(db)
        ledger.ensure_table()
        ledger.record_applied(5, "from-elsewhere")
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "CREATE TABLE a (id INT);"})

        with caplog.at_level(logging.WARNING, logger="sql_migrator"):
            applied = Migrator(db, directory, info_logger=RecordingLogger()).migrate()

        assert applied == []
        assert "a" not in table_names(db)
        assert "Ledger version 5 is ahead of the newest migration file (version 1)" in caplog.messages

    def test_module_level_entry_point(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "CREATE TABLE a (id INT);"})

        applied = migrate(db, directory, info_logger=RecordingLogger())

        assert [m.name for m in applied] == ["a"]

    def test_default_logger_uses_logging(
        self, db: DBAPIDatabase, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that without an injected logger messages go to the sql_migrator logger."""
        directory = tmp_path / "migrations"
        directory.mkdir()

        with caplog.at_level("INFO", logger="sql_migrator"):
            migrate(db, directory)

        assert "no migrations found" in caplog.messages


class TestStatus:
    """Tests for Migrator.status."""

    def test_fresh_database(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that status works without creating the ledger table."""
        directory = write_migrations(tmp_path / "migrations", {"1_a.sql": "", "2_b.sql": ""})

        statuses = Migrator(db, directory, info_logger=RecordingLogger()).status()

        assert [(s.version, s.state) for s in statuses] == [
            (1, MigrationState.PENDING),
            (2, MigrationState.PENDING),
        ]
        assert "gomigrator_version" not in table_names(db)

    def test_applied_pending_skipped_missing(self, db: DBAPIDatabase, tmp_path: Path) -> None:
        """Test that every state is reported."""
        ledger = VersionLedger(db)
        ledger.ensure_table()
        ledger.record_applied(1, "a")
        ledger.record_applied(3, "c")
        ledger.record_applied(4, "deleted")
        directory = write_migrations(
            tmp_path / "migrations",
            {"1_a.sql": "", "2_b.sql": "", "3_c.sql": "", "5_e.sql": ""},
        )

        statuses = Migrator(db, directory, info_logger=RecordingLogger()).status()

        assert [(s.version, s.name, s.state) for s in statuses] == [
            (1, "a", MigrationState.APPLIED),
            (2, "b", MigrationState.SKIPPED),
            (3, "c", MigrationState.APPLIED),
            (4, "deleted", MigrationState.MISSING),
            (5, "e", MigrationState.PENDING),
        ]
        assert statuses[3].migration is None
        assert statuses[0].ledger_row is not None
