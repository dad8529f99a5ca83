"""SQLite Backend (Standardbibliothek sqlite3)"""

import re
import sqlite3
from typing import Any, List, Sequence

from .base import ErrorClassifier, ErrorDiagnostics, ErrorKind, StorageBackend, Transaction

_COMMENTS = re.compile(r'--[^\n]*|/\*.*?\*/', re.DOTALL)


def split_statements(script: str) -> List[str]:
    """
    Zerlegt ein SQL-Skript in einzelne Statements

    Nutzt sqlite3.complete_statement, damit Semikolons in Strings
    und Trigger-Körpern (BEGIN ... END;) nicht als Ende zählen.
    """
    statements = []
    buffer = ''
    parts = script.split(';')

    for index, part in enumerate(parts):
        buffer += part
        if index < len(parts) - 1:
            buffer += ';'
            if not sqlite3.complete_statement(buffer):
                continue
        elif not buffer:
            break

        # Nur Kommentare/Whitespace -> kein Statement
        if _COMMENTS.sub('', buffer).strip(' \t\r\n;'):
            statements.append(buffer.strip())
        buffer = ''

    return statements


class SQLiteErrorClassifier(ErrorClassifier):
    """Erkennt fehlende Tabellen an 'no such table'"""

    def classify(self, error: BaseException) -> ErrorKind:
        if isinstance(error, sqlite3.OperationalError) and 'no such table' in str(error):
            return ErrorKind.RELATION_MISSING
        return ErrorKind.OTHER

    def diagnostics(self, error: BaseException) -> ErrorDiagnostics:
        diagnostics = ErrorDiagnostics(message=str(error))
        # sqlite_errorname gibt es erst ab Python 3.11
        error_name = getattr(error, 'sqlite_errorname', None)
        if error_name:
            diagnostics.detail = error_name
        return diagnostics


class SQLiteTransaction(Transaction):
    """
    Transaktion mit explizitem BEGIN/COMMIT/ROLLBACK

    executescript() wird bewusst nicht verwendet, da es eine offene
    Transaktion vorher committet.
    """

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection
        self.connection.execute("BEGIN")

    def execute_batch(self, sql: str) -> None:
        cursor = self.connection.cursor()
        try:
            for statement in split_statements(sql):
                cursor.execute(statement)
        finally:
            cursor.close()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self.connection.execute(sql, tuple(params))

    def commit(self) -> None:
        self.connection.execute("COMMIT")

    def rollback(self) -> None:
        if self.connection.in_transaction:
            self.connection.execute("ROLLBACK")


class SQLiteBackend(StorageBackend):
    """SQLite-Datenbank über eine sqlite3.Connection"""

    placeholder = '?'

    def __init__(self, connection: sqlite3.Connection):
        super().__init__(connection, SQLiteErrorClassifier())

    def fetch_scalar(self, sql: str) -> Any:
        row = self.connection.execute(sql).fetchone()
        return row[0] if row is not None else None

    def begin(self) -> SQLiteTransaction:
        return SQLiteTransaction(self.connection)

    def get_backend_name(self) -> str:
        return "SQLite"
