"""
Unit Tests für MigrationRunner
"""

import sqlite3
import threading
import pytest
from loguru import logger

from stepmigrate import migrate_database
from stepmigrate.migrations import (
    CommitError,
    ExecutionError,
    InvalidFilenameError,
    InvalidTargetError,
    MemorySource,
    MigrationCancelledError,
    MigrationRunner,
    MissingMigrationError,
    VersionStore,
    VersionWriteError,
)
from conftest import SCENARIO_FILES, table_names, write_files


@pytest.fixture
def runner(backend, scenario_dir):
    return MigrationRunner(backend, scenario_dir)


def current_version(backend):
    return VersionStore(backend).get_or_bootstrap()


def test_scenario_up_down_latest(runner, backend, sqlite_conn):
    """Test: 2 -> 1 -> neueste, wie in den Referenz-Fixtures"""
    assert runner.run(2) == 2
    assert current_version(backend) == 2
    assert table_names(sqlite_conn) == ["bar", "foo"]

    assert runner.run(1) == 1
    assert current_version(backend) == 1
    assert table_names(sqlite_conn) == ["foo"]

    assert runner.run(-1) == 3
    assert current_version(backend) == 3
    assert table_names(sqlite_conn) == ["bar", "baz", "foo"]


def test_same_target_is_noop(runner, backend):
    """Test: Zweimal dieselbe Zielversion -> keine Schritte"""
    runner.run(2)

    assert runner.plan(2) == []
    assert runner.run(2) == 2
    assert current_version(backend) == 2


@pytest.mark.parametrize("first,second", [
    (0, 3), (3, 0), (1, 3), (3, 1), (2, 2), (0, 1), (2, 0),
])
def test_any_target_sequence(runner, backend, first, second):
    """Test: T1 dann T2 -> Version ist genau T2"""
    runner.run(first)
    runner.run(second)

    assert current_version(backend) == second


def test_round_trip(runner, sqlite_conn):
    """Test: N -> 0 -> N hinterlässt keine Reste"""
    runner.run(3)
    runner.run(0)
    assert table_names(sqlite_conn) == []

    assert runner.run(3) == 3
    assert table_names(sqlite_conn) == ["bar", "baz", "foo"]


def test_missing_down_file_fails_before_sql(backend, sqlite_conn, migrations_dir):
    """Test: Fehlende Down-Datei -> Abbruch vor jeder Migration"""
    files = dict(SCENARIO_FILES)
    del files["002-bar.down.sql"]
    write_files(migrations_dir, files)

    with pytest.raises(MissingMigrationError):
        MigrationRunner(backend, migrations_dir).run(-1)

    assert current_version(backend) == 0
    assert table_names(sqlite_conn) == []


def test_invalid_filename_fails_before_sql(backend, sqlite_conn, migrations_dir):
    """Test: Ungültiger Dateiname -> Abbruch vor jeder Migration"""
    write_files(migrations_dir, SCENARIO_FILES)
    write_files(migrations_dir, {"four-qux.up.sql": "CREATE TABLE qux (id int);"})

    with pytest.raises(InvalidFilenameError):
        MigrationRunner(backend, migrations_dir).run(-1)

    assert current_version(backend) == 0
    assert table_names(sqlite_conn) == []


def test_target_out_of_range(runner, backend):
    """Test: Zielversion größer als neueste Migration"""
    with pytest.raises(InvalidTargetError):
        runner.run(7)

    assert current_version(backend) == 0


def test_failing_step_keeps_previous_commits(backend, sqlite_conn):
    """Test: Fehler in Schritt 2 -> Schritt 1 bleibt, Schritt 2 komplett zurückgerollt"""
    source = MemorySource({
        "1-foo.up.sql": "CREATE TABLE foo (id int);",
        "1-foo.down.sql": "DROP TABLE foo;",
        "2-bar.up.sql": "CREATE TABLE bar (id int);\nINSERT INTO missing_table VALUES (1);",
        "2-bar.down.sql": "DROP TABLE bar;",
        "3-baz.up.sql": "CREATE TABLE baz (id int);",
    })
    runner = MigrationRunner(backend, source)

    with pytest.raises(ExecutionError) as exc_info:
        runner.run(-1)

    error = exc_info.value
    assert error.path == "2-bar.up.sql"
    assert error.version == 2
    assert "missing_table" in error.diagnostics.message
    assert isinstance(error.__cause__, sqlite3.OperationalError)

    assert current_version(backend) == 1
    assert table_names(sqlite_conn) == ["foo"]
    assert not sqlite_conn.in_transaction


def test_rollback_of_latest_without_down_file(backend, sqlite_conn):
    """Test: Neueste Migration ohne Down-Datei kann nicht zurückgerollt werden"""
    source = MemorySource({"1.up.sql": "CREATE TABLE foo (id int);"})
    runner = MigrationRunner(backend, source)
    runner.run(-1)

    with pytest.raises(MissingMigrationError):
        runner.run(0)

    assert current_version(backend) == 1
    assert table_names(sqlite_conn) == ["foo"]


def test_cancel_between_steps(backend, scenario_dir):
    """Test: Abbruch wird erst vor dem nächsten Schritt geprüft"""
    cancel = threading.Event()

    class CancellingSource(MemorySource):
        def read(self, name):
            cancel.set()
            return super().read(name)

    runner = MigrationRunner(backend, CancellingSource(SCENARIO_FILES))

    with pytest.raises(MigrationCancelledError) as exc_info:
        runner.run(-1, cancel_event=cancel)

    assert exc_info.value.version == 1
    assert current_version(backend) == 1


def test_cancel_before_start(runner, backend):
    """Test: Bereits gesetztes Event -> kein Schritt"""
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(MigrationCancelledError):
        runner.run(-1, cancel_event=cancel)

    assert current_version(backend) == 0


def test_plan_has_no_side_effects(runner, sqlite_conn):
    """Test: plan() und current_version() legen nicht einmal die Tracking-Tabelle an"""
    steps = runner.plan(-1)

    assert [step.resulting_version for step in steps] == [1, 2, 3]
    assert runner.current_version() == 0
    assert sqlite_conn.execute("SELECT count(*) FROM sqlite_master").fetchone() == (0,)


def test_same_target_above_latest_is_noop(backend, sqlite_conn):
    """Test: Version über der neuesten Datei, Ziel == aktuelle Version -> kein Fehler"""
    store = VersionStore(backend)
    store.get_or_bootstrap()
    sqlite_conn.execute("UPDATE _migrate_ SET version = 5")
    runner = MigrationRunner(backend, MemorySource({
        "1.up.sql": "CREATE TABLE foo (id int);",
        "1.down.sql": "DROP TABLE foo;",
    }))

    assert runner.plan(5) == []
    assert runner.run(5) == 5
    assert current_version(backend) == 5
    assert table_names(sqlite_conn) == []


def test_zero_migration_is_never_applied(backend, sqlite_conn):
    """Test: Datei mit Nummer 0 wird geladen, aber nie ausgeführt"""
    runner = MigrationRunner(backend, MemorySource({
        "000-baseline.up.sql": "CREATE TABLE baseline (id int);",
        "000-baseline.down.sql": "DROP TABLE baseline;",
        "1-foo.up.sql": "CREATE TABLE foo (id int);",
        "1-foo.down.sql": "DROP TABLE foo;",
    }))

    assert runner.run(-1) == 1
    assert table_names(sqlite_conn) == ["foo"]
    assert runner.run(0) == 0
    assert table_names(sqlite_conn) == []


def test_version_write_failure(runner, sqlite_conn):
    """Test: Fehler beim Versions-Update -> VersionWriteError, Schritt zurückgerollt"""
    runner.version_store.get_or_bootstrap()

    def set_version(transaction, version):
        raise sqlite3.OperationalError("attempt to write a readonly database")

    runner.version_store.set_version = set_version

    with pytest.raises(VersionWriteError) as exc_info:
        runner.run(1)

    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
    assert table_names(sqlite_conn) == []
    assert not sqlite_conn.in_transaction
    assert current_version(runner.backend) == 0


def test_commit_failure(runner):
    """Test: Fehlgeschlagener Commit -> CommitError"""
    # Tracking-Tabelle vorher anlegen, Bootstrap nutzt ebenfalls begin()
    assert runner.version_store.get_or_bootstrap() == 0
    original_begin = runner.backend.begin

    def begin():
        transaction = original_begin()

        def commit():
            raise sqlite3.OperationalError("database is locked")

        transaction.commit = commit
        return transaction

    runner.backend.begin = begin

    with pytest.raises(CommitError) as exc_info:
        runner.run(1)

    assert exc_info.value.version == 1
    assert not runner.backend.connection.in_transaction
    assert current_version(runner.backend) == 0


def test_diagnostics_logged_to_injected_logger(backend):
    """Test: Plan und SQL-Fehler landen im übergebenen Logger"""
    messages = []
    handler_id = logger.add(
        messages.append,
        format="{extra[component]} {message}",
        filter=lambda record: record["extra"].get("component") == "migrations",
    )
    try:
        source = MemorySource({"1.up.sql": "CREATE TABLE;"})
        runner = MigrationRunner(backend, source, logger=logger)

        with pytest.raises(ExecutionError):
            runner.run(-1)
    finally:
        logger.remove(handler_id)

    text = "".join(messages)
    assert "migrations Migrate from 0 to 1" in text
    assert "migrations SQL error in 1.up.sql" in text


def test_diagnostics_disabled(backend):
    """Test: diagnostics=False unterdrückt Plan-Ausgabe"""
    messages = []
    handler_id = logger.add(messages.append, format="{message}", level="INFO")
    try:
        runner = MigrationRunner(backend, MemorySource({"1.up.sql": "CREATE TABLE a (id int);"}),
                                 diagnostics=False)
        runner.run(-1)
    finally:
        logger.remove(handler_id)

    assert not any("Migrate from" in message for message in messages)


def test_migrate_database_with_sqlite_connection(sqlite_conn, scenario_dir):
    """Test: Einstiegspunkt erkennt sqlite3-Verbindung automatisch"""
    assert migrate_database(sqlite_conn, scenario_dir, 2) == 2
    assert migrate_database(sqlite_conn, str(scenario_dir), -1) == 3
    assert table_names(sqlite_conn) == ["bar", "baz", "foo"]


def test_migrate_database_legacy_transaction_mode(scenario_dir, tmp_path):
    """Test: Verbindung mit Standard isolation_level funktioniert ebenfalls"""
    conn = sqlite3.connect(str(tmp_path / "legacy.db"))
    try:
        assert migrate_database(conn, scenario_dir) == 3
        assert migrate_database(conn, scenario_dir, 0) == 0
        assert table_names(conn) == []
    finally:
        conn.close()


def test_trigger_with_inner_semicolons(backend, sqlite_conn):
    """Test: Trigger-Körper mit Semikolons wird als ein Statement ausgeführt"""
    source = MemorySource({
        "1.up.sql": """
            CREATE TABLE events (id int, note text);
            CREATE TABLE audit (note text);
            -- audit trail
            CREATE TRIGGER events_audit AFTER INSERT ON events
            BEGIN
                INSERT INTO audit (note) VALUES ('insert; ' || NEW.note);
            END;
        """,
    })

    MigrationRunner(backend, source).run(-1)
    sqlite_conn.execute("INSERT INTO events VALUES (1, 'x')")

    assert sqlite_conn.execute("SELECT note FROM audit").fetchall() == [("insert; x",)]
