"""Datenbank-Verbindungen für die Kommandozeile"""

import sqlite3
from pathlib import Path
from typing import Any, Union


def open_sqlite(db_path: Union[str, Path]) -> sqlite3.Connection:
    """
    Öffnet eine SQLite-Datenbank für Migrationen

    isolation_level=None: Transaktionen steuert das Backend selbst (BEGIN/COMMIT).
    Das Verzeichnis wird bei Bedarf angelegt.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return sqlite3.connect(str(db_path), isolation_level=None)


def open_postgres(url: str) -> Any:
    """
    Öffnet eine PostgreSQL-Verbindung mit psycopg 3

    Benötigt das optionale Extra: pip install stepmigrate[postgres]
    """
    try:
        import psycopg
    except ImportError as e:
        raise RuntimeError(
            "PostgreSQL support requires psycopg: pip install 'stepmigrate[postgres]'"
        ) from e

    return psycopg.connect(url)
