"""
Pytest Configuration & Shared Fixtures
"""

import pytest
import sys
import shutil
import sqlite3
import tempfile
from pathlib import Path

# Füge Projekt-Root zum Python-Path hinzu
sys.path.insert(0, str(Path(__file__).parent.parent))

from stepmigrate.backends import SQLiteBackend


# Dateien wie in den Referenz-Fixtures: foo, bar, baz
SCENARIO_FILES = {
    "001-foo.up.sql": "CREATE TABLE foo (id int);",
    "001-foo.down.sql": "DROP TABLE foo;",
    "002-bar.up.sql": "CREATE TABLE bar (id int);",
    "002-bar.down.sql": "DROP TABLE bar",
    "003-baz.up.sql": "CREATE TABLE baz (id int);",
    "003-baz.down.sql": "DROP TABLE baz;",
}


def write_files(directory, files):
    """Schreibt name -> Inhalt in ein Verzeichnis"""
    for name, content in files.items():
        (Path(directory) / name).write_text(content, encoding='utf-8')


def table_names(connection):
    """Tabellen der SQLite-Datenbank (ohne Tracking-Tabelle)"""
    rows = connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name != '_migrate_' ORDER BY name"
    ).fetchall()
    return [row[0] for row in rows]


@pytest.fixture
def migrations_dir():
    """Temporäres Migrations-Verzeichnis"""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def scenario_dir(migrations_dir):
    """Verzeichnis mit foo/bar/baz Migrationen"""
    write_files(migrations_dir, SCENARIO_FILES)
    return migrations_dir


@pytest.fixture
def sqlite_conn():
    """Temporäre SQLite-Datenbank (Datei, autocommit)"""
    temp_dir = tempfile.mkdtemp()
    conn = sqlite3.connect(str(Path(temp_dir) / "test.db"), isolation_level=None)
    yield conn
    conn.close()
    shutil.rmtree(temp_dir)


@pytest.fixture
def backend(sqlite_conn):
    """SQLite Backend auf der Test-Datenbank"""
    return SQLiteBackend(sqlite_conn)
