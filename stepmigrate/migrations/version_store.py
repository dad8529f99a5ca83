"""Persistierte Schema-Version in der Ziel-Datenbank"""

import re
from loguru import logger

from ..backends.base import ErrorKind, StorageBackend, Transaction
from .errors import VersionReadError, VersionWriteError

DEFAULT_VERSION_TABLE = '_migrate_'

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$')


def validate_table_name(table: str) -> str:
    """Erlaubt nur einfache (ggf. schema-qualifizierte) SQL-Bezeichner"""
    if not _IDENTIFIER.match(table or ''):
        raise ValueError(f"Invalid version table name: {table!r}")
    return table


class VersionStore:
    """
    Verwaltet die Tracking-Tabelle mit genau einer Zeile (version)

    Die Tabelle wird beim ersten Lesen angelegt (Version 0).
    """

    def __init__(self, backend: StorageBackend, table: str = DEFAULT_VERSION_TABLE):
        self.backend = backend
        self.table = validate_table_name(table)

    def get_or_bootstrap(self) -> int:
        """
        Liest die aktuelle Version, legt die Tabelle bei Bedarf an

        Returns:
            Aktuelle Schema-Version (0 = nichts angewendet)

        Raises:
            VersionReadError: Jeder Fehler außer "Tabelle existiert nicht"
        """
        version = self._read()
        if version is None:
            self._bootstrap()
            return 0
        return version

    def read(self) -> int:
        """
        Liest die aktuelle Version ohne die Tabelle anzulegen

        Returns:
            Aktuelle Schema-Version, 0 wenn die Tabelle noch nicht existiert
        """
        version = self._read()
        return 0 if version is None else version

    def _read(self):
        """Version aus der Tabelle, None wenn die Tabelle fehlt"""
        try:
            value = self.backend.fetch_scalar(f"SELECT version FROM {self.table}")
        except Exception as e:
            if self.backend.classifier.classify(e) is not ErrorKind.RELATION_MISSING:
                raise VersionReadError(f"Reading version from {self.table}: {e}") from e
            return None

        return self._parse(value)

    def set_version(self, transaction: Transaction, version: int):
        """Setzt die Version innerhalb der Transaktion eines Schritts"""
        transaction.execute(
            f"UPDATE {self.table} SET version = {self.backend.placeholder}",
            (version,)
        )

    def _bootstrap(self):
        """Erstellt die Tracking-Tabelle mit Version 0"""
        logger.info(f"Creating version table {self.table}")
        try:
            transaction = self.backend.begin()
        except Exception as e:
            raise VersionWriteError(f"Creating version table {self.table}: {e}") from e

        try:
            transaction.execute_batch(f"""
                CREATE TABLE {self.table} (version int primary key);
                INSERT INTO {self.table} (version) VALUES (0);
            """)
            transaction.commit()
        except Exception as e:
            try:
                transaction.rollback()
            except Exception as rollback_error:
                logger.warning(f"Rollback of version table bootstrap failed: {rollback_error}")
            raise VersionWriteError(f"Creating version table {self.table}: {e}") from e

    def _parse(self, value) -> int:
        if value is None:
            raise VersionReadError(f"Version table {self.table} has no row")
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise VersionReadError(f"Invalid version value in {self.table}: {value!r}")

        try:
            version = int(value)
        except ValueError as e:
            raise VersionReadError(f"Invalid version value in {self.table}: {value!r}") from e

        if version < 0:
            raise VersionReadError(f"Negative version in {self.table}: {version}")
        return version
