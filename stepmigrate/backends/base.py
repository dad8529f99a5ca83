"""Abstraktes Interface für Datenbank-Backends"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, List, Optional, Sequence


class ErrorKind(Enum):
    """Semantische Fehlerklassen, unabhängig vom Treiber"""
    RELATION_MISSING = "relation_missing"
    OTHER = "other"


@dataclass
class ErrorDiagnostics:
    """Vom Datenbank-Server gemeldete Details zu einem SQL-Fehler"""
    message: Optional[str] = None
    detail: Optional[str] = None
    position: Optional[str] = None
    table: Optional[str] = None
    where: Optional[str] = None

    def lines(self) -> List[str]:
        """Gesetzte Felder als 'Label: Wert' Zeilen (ohne message)"""
        result = []
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name != 'message' and value:
                result.append(f"{item.name.capitalize()}: {value}")
        return result


class ErrorClassifier(ABC):
    """
    Ordnet Treiber-Exceptions einer ErrorKind zu
    Implementierungen: SQLite, PostgreSQL
    """

    @abstractmethod
    def classify(self, error: BaseException) -> ErrorKind:
        """
        Klassifiziert eine Exception des Treibers

        Args:
            error: Vom Treiber geworfene Exception

        Returns:
            ErrorKind.RELATION_MISSING wenn die Tabelle nicht existiert, sonst OTHER
        """
        pass

    def diagnostics(self, error: BaseException) -> ErrorDiagnostics:
        """Extrahiert Diagnose-Felder (Default: nur die Meldung)"""
        return ErrorDiagnostics(message=str(error))


class Transaction(ABC):
    """Eine offene Datenbank-Transaktion"""

    @abstractmethod
    def execute_batch(self, sql: str) -> None:
        """Führt ein SQL-Skript (mehrere Statements, keine Parameter) aus"""
        pass

    @abstractmethod
    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        """Führt ein einzelnes parametrisiertes Statement aus"""
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class StorageBackend(ABC):
    """
    Abstraktes Base-Interface für die Ziel-Datenbank
    Kapselt eine vom Aufrufer geöffnete Verbindung
    """

    #: Platzhalter für Parameter im SQL des Treibers
    placeholder = '?'

    def __init__(self, connection: Any, classifier: ErrorClassifier):
        self.connection = connection
        self.classifier = classifier

    @abstractmethod
    def fetch_scalar(self, sql: str) -> Any:
        """
        Liest den ersten Wert der ersten Zeile

        Returns:
            Wert oder None wenn keine Zeile existiert

        Raises:
            Exception des Treibers; die Verbindung bleibt danach benutzbar
        """
        pass

    @abstractmethod
    def begin(self) -> Transaction:
        """Startet eine neue Transaktion"""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        pass
