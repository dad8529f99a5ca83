"""
Migration Runner

Bringt das Schema schrittweise von der aktuellen auf die Zielversion.
Jeder Schritt (SQL-Datei + Versions-Update) läuft in einer eigenen
Transaktion, der erste Fehler beendet den Lauf.
"""

import threading
from pathlib import Path
from typing import Any, List, Optional, Union
from loguru import logger as default_logger

from ..backends.base import StorageBackend, Transaction
from ..backends.factory import BackendFactory
from .errors import CommitError, ExecutionError, MigrationCancelledError, VersionWriteError
from .loader import MigrationSetLoader
from .models import LATEST, MigrationSet, MigrationStep
from .source import DirectorySource, MigrationSource
from .version_store import DEFAULT_VERSION_TABLE, VersionStore


class MigrationRunner:
    """
    Führt Up-/Down-Migrationen sequentiell aus

    - Kein Lock gegen parallele Runner auf derselben Datenbank
    - Bereits committete Schritte bleiben bei Fehlern erhalten
    - Abbruch (cancel_event) wird nur zwischen Schritten geprüft
    """

    def __init__(self, backend: StorageBackend,
                 source: Union[MigrationSource, str, Path],
                 version_table: str = DEFAULT_VERSION_TABLE,
                 logger: Any = None,
                 diagnostics: bool = True):
        """
        Args:
            backend: Backend der Ziel-Datenbank
            source: MigrationSource oder Verzeichnis mit *.sql Dateien
            version_table: Name der Tracking-Tabelle
            logger: loguru Logger (default: globaler loguru Logger)
            diagnostics: Plan, Dateien und SQL-Fehlerdetails loggen
        """
        self.backend = backend
        self.source = source if isinstance(source, MigrationSource) else DirectorySource(source)
        self.version_store = VersionStore(backend, version_table)
        self.loader = MigrationSetLoader()
        self.logger = (logger or default_logger).bind(component="migrations")
        self.diagnostics = diagnostics

    def current_version(self) -> int:
        """Aktuelle Schema-Version (nur lesend, fehlende Tracking-Tabelle = 0)"""
        return self.version_store.read()

    def plan(self, target_version: int = LATEST) -> List[MigrationStep]:
        """
        Berechnet die Schritte ohne sie auszuführen

        Die Datenbank wird nicht verändert, auch die Tracking-Tabelle
        wird nicht angelegt.

        Returns:
            Liste der Schritte in Ausführungsreihenfolge
        """
        current = self.version_store.read()
        migration_set = self.loader.load(self.source)
        return migration_set.steps(current, target_version)

    def run(self, target_version: int = LATEST,
            cancel_event: Optional[threading.Event] = None) -> int:
        """
        Migriert auf die Zielversion

        Args:
            target_version: Zielversion, -1 = höchste gefundene Migration
            cancel_event: Wird vor jedem Schritt geprüft

        Returns:
            Erreichte Schema-Version

        Raises:
            MigrationError: Erster aufgetretener Fehler
        """
        current = self.version_store.get_or_bootstrap()
        migration_set = self.loader.load(self.source)
        # Kompletter Plan vor der ersten Transaktion, fehlende Dateien fallen hier auf
        steps = migration_set.steps(current, target_version)
        target = steps[-1].resulting_version if steps else current

        if self.diagnostics:
            self.logger.info(f"Migrate from {current} to {target}")

        if not steps:
            self.logger.debug(f"Database already at version {current}")
            return current

        version = current
        for step in steps:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(f"Migration cancelled at version {version}")
                raise MigrationCancelledError(version)

            self._apply_step(migration_set, step)
            version = step.resulting_version

        self.logger.info(f"✅ Database migrated to version {version} ({len(steps)} step(s))")
        return version

    def _apply_step(self, migration_set: MigrationSet, step: MigrationStep):
        """Datei ausführen, Version setzen, committen - alles in einer Transaktion"""
        migration = step.file
        if self.diagnostics:
            self.logger.info(f"File: {migration.path}")

        sql = migration_set.read(migration)

        try:
            transaction = self.backend.begin()
        except Exception as e:
            raise ExecutionError(migration.path, step.resulting_version,
                                 self.backend.classifier.diagnostics(e)) from e

        try:
            transaction.execute_batch(sql)
        except Exception as e:
            self._rollback(transaction, migration.path)
            diagnostics = self.backend.classifier.diagnostics(e)
            self._log_sql_error(migration.path, diagnostics)
            raise ExecutionError(migration.path, step.resulting_version, diagnostics) from e

        try:
            self.version_store.set_version(transaction, step.resulting_version)
        except Exception as e:
            self._rollback(transaction, migration.path)
            raise VersionWriteError(
                f"Setting version {step.resulting_version} after {migration.path}: {e}"
            ) from e

        try:
            transaction.commit()
        except Exception as e:
            self._rollback(transaction, migration.path)
            raise CommitError(migration.path, step.resulting_version) from e

    def _rollback(self, transaction: Transaction, path: str):
        try:
            transaction.rollback()
        except Exception as e:
            self.logger.warning(f"Rollback after {path} failed: {e}")

    def _log_sql_error(self, path: str, diagnostics):
        if not self.diagnostics:
            return
        self.logger.error(f"SQL error in {path}: {diagnostics.message}")
        for line in diagnostics.lines():
            self.logger.error(line)


def migrate_database(connection: Any,
                     migrations_dir: Union[MigrationSource, str, Path],
                     target_version: int = LATEST,
                     *,
                     cancel_event: Optional[threading.Event] = None,
                     logger: Any = None,
                     version_table: str = DEFAULT_VERSION_TABLE,
                     backend: Optional[str] = None,
                     diagnostics: bool = True) -> int:
    """
    Migriert eine Datenbank auf target_version

    Args:
        connection: Offene Verbindung (sqlite3, psycopg, ...) oder StorageBackend
        migrations_dir: Verzeichnis oder MigrationSource
        target_version: Zielversion, -1 = neueste
        cancel_event: Abbruch zwischen Schritten
        logger: loguru Logger
        version_table: Name der Tracking-Tabelle
        backend: Backend-Name, None = automatisch erkennen
        diagnostics: Plan und SQL-Fehlerdetails loggen

    Returns:
        Erreichte Schema-Version
    """
    storage = BackendFactory.create_backend(connection, backend)
    runner = MigrationRunner(
        storage,
        migrations_dir,
        version_table=version_table,
        logger=logger,
        diagnostics=diagnostics,
    )
    return runner.run(target_version, cancel_event=cancel_event)
