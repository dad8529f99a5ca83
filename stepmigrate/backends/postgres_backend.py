"""PostgreSQL Backend für DB-API 2 Verbindungen (psycopg2, psycopg 3, pg8000, PyGreSQL)"""

from typing import Any, Dict, Optional, Sequence

from .base import ErrorClassifier, ErrorDiagnostics, ErrorKind, StorageBackend, Transaction

# SQLSTATE undefined_table
UNDEFINED_TABLE = '42P01'


def _server_fields(error: BaseException) -> Dict[str, Any]:
    """Felder der Server-Fehlermeldung, wie pg8000 sie als dict in args[0] liefert"""
    if error.args and isinstance(error.args[0], dict):
        return error.args[0]
    return {}


class PostgresErrorClassifier(ErrorClassifier):
    """Erkennt fehlende Tabellen am SQLSTATE des Treibers"""

    @staticmethod
    def _sqlstate(error: BaseException) -> Optional[str]:
        # psycopg2: pgcode, psycopg 3 / PyGreSQL: sqlstate, pg8000: args[0]['C']
        return (getattr(error, 'pgcode', None)
                or getattr(error, 'sqlstate', None)
                or _server_fields(error).get('C'))

    def classify(self, error: BaseException) -> ErrorKind:
        if self._sqlstate(error) == UNDEFINED_TABLE:
            return ErrorKind.RELATION_MISSING
        return ErrorKind.OTHER

    def diagnostics(self, error: BaseException) -> ErrorDiagnostics:
        diag = getattr(error, 'diag', None)
        if diag is None:
            server = _server_fields(error)
            if server:
                return ErrorDiagnostics(
                    message=server.get('M') or str(error).strip(),
                    detail=server.get('D'),
                    position=server.get('P'),
                    table=server.get('t'),
                    where=server.get('W'),
                )
            return ErrorDiagnostics(message=str(error).strip())

        position = getattr(diag, 'statement_position', None)
        return ErrorDiagnostics(
            message=getattr(diag, 'message_primary', None) or str(error).strip(),
            detail=getattr(diag, 'message_detail', None),
            position=str(position) if position else None,
            table=getattr(diag, 'table_name', None),
            where=getattr(diag, 'context', None),
        )


class PostgresTransaction(Transaction):
    """
    Transaktion auf einer DB-API Verbindung

    Ohne autocommit öffnet der Treiber die Transaktion implizit,
    mit autocommit wird BEGIN explizit gesendet.
    """

    def __init__(self, connection: Any):
        self.connection = connection
        self.cursor = connection.cursor()
        self.explicit = bool(getattr(connection, 'autocommit', False))
        if self.explicit:
            self.cursor.execute("BEGIN")

    def execute_batch(self, sql: str) -> None:
        self.cursor.execute(sql)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self.cursor.execute(sql, tuple(params))

    def commit(self) -> None:
        try:
            if self.explicit:
                self.cursor.execute("COMMIT")
            else:
                self.connection.commit()
        finally:
            self.cursor.close()

    def rollback(self) -> None:
        try:
            if self.explicit:
                self.cursor.execute("ROLLBACK")
            else:
                self.connection.rollback()
        finally:
            self.cursor.close()


class PostgresBackend(StorageBackend):
    """PostgreSQL-Datenbank über eine vom Aufrufer geöffnete Verbindung"""

    placeholder = '%s'

    def __init__(self, connection: Any):
        super().__init__(connection, PostgresErrorClassifier())

    @property
    def autocommit(self) -> bool:
        return bool(getattr(self.connection, 'autocommit', False))

    def fetch_scalar(self, sql: str) -> Any:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            row = cursor.fetchone()
        except Exception:
            # Abgebrochene Transaktion zurücksetzen, sonst ist die Verbindung blockiert
            if not self.autocommit:
                self.connection.rollback()
            raise
        finally:
            cursor.close()

        if not self.autocommit:
            self.connection.commit()
        return row[0] if row is not None else None

    def begin(self) -> PostgresTransaction:
        return PostgresTransaction(self.connection)

    def get_backend_name(self) -> str:
        return "PostgreSQL"
