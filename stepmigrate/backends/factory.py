"""Factory für Datenbank-Backends"""

import sqlite3
from typing import Any, Optional
from loguru import logger

from .base import StorageBackend
from .postgres_backend import PostgresBackend
from .sqlite_backend import SQLiteBackend


class BackendFactory:
    """
    Factory zum Erstellen des passenden Backends
    für eine vom Aufrufer geöffnete Verbindung
    """

    BACKENDS = {
        'sqlite': SQLiteBackend,
        'sqlite3': SQLiteBackend,
        'postgres': PostgresBackend,
        'postgresql': PostgresBackend,
        'pg': PostgresBackend,
    }

    @staticmethod
    def detect_backend(connection: Any) -> Optional[str]:
        """
        Erkennt den Backend-Typ anhand der Verbindung

        Returns:
            Backend-Name oder None wenn unbekannt
        """
        if isinstance(connection, sqlite3.Connection):
            return 'sqlite'

        module = type(connection).__module__ or ''
        if module.startswith(('psycopg', 'pg8000', 'pgdb')):
            return 'postgres'

        return None

    @staticmethod
    def create_backend(connection: Any, backend: Optional[str] = None) -> StorageBackend:
        """
        Erstellt das Backend für eine Verbindung

        Args:
            connection: Offene DB-API Verbindung oder bereits ein StorageBackend
            backend: Backend-Name ('sqlite', 'postgres', ...), None = automatisch

        Returns:
            StorageBackend Instanz

        Raises:
            ValueError: Backend unbekannt oder nicht erkennbar
        """
        if isinstance(connection, StorageBackend):
            return connection

        name = backend or BackendFactory.detect_backend(connection)
        if name is None:
            raise ValueError(
                f"Cannot detect database backend for {type(connection).__name__}, "
                f"pass one of: {', '.join(BackendFactory.BACKENDS.keys())}"
            )

        backend_class = BackendFactory.BACKENDS.get(name.lower().strip())
        if not backend_class:
            logger.error(f"Unknown backend: {name}")
            logger.info(f"Available backends: {', '.join(BackendFactory.BACKENDS.keys())}")
            raise ValueError(f"Unknown backend: {name}")

        instance = backend_class(connection)
        logger.debug(f"Created {instance.get_backend_name()} backend")
        return instance

    @staticmethod
    def get_backend_names() -> list:
        """Gibt Liste der Backend-Namen zurück"""
        return sorted(set([
            'SQLite',
            'PostgreSQL'
        ]))
