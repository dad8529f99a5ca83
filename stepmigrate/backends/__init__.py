"""
Datenbank-Backends

Kapseln die Treiber-spezifischen Teile: Transaktionen,
Lesen einzelner Werte und Klassifizierung von Fehlern.
"""

from .base import ErrorClassifier, ErrorDiagnostics, ErrorKind, StorageBackend, Transaction
from .factory import BackendFactory
from .postgres_backend import PostgresBackend, PostgresErrorClassifier
from .sqlite_backend import SQLiteBackend, SQLiteErrorClassifier

__all__ = [
    'BackendFactory',
    'ErrorClassifier',
    'ErrorDiagnostics',
    'ErrorKind',
    'PostgresBackend',
    'PostgresErrorClassifier',
    'SQLiteBackend',
    'SQLiteErrorClassifier',
    'StorageBackend',
    'Transaction',
]
