"""Quellen für Migrations-Dateien"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Union

from .errors import DiscoveryError


class MigrationSource(ABC):
    """
    Abstrakte Quelle für Migrationen
    Implementierungen: Verzeichnis, In-Memory (z.B. eingebettete Assets)
    """

    @abstractmethod
    def list_names(self) -> List[str]:
        """
        Listet alle Einträge der Quelle

        Returns:
            Dateinamen (ohne Verzeichnis)

        Raises:
            DiscoveryError: Quelle nicht lesbar
        """
        pass

    @abstractmethod
    def read(self, name: str) -> str:
        """Gibt den SQL-Inhalt eines Eintrags zurück"""
        pass

    def describe(self, name: str) -> str:
        """Lesbarer Pfad eines Eintrags für Logs und Fehlermeldungen"""
        return name


class DirectorySource(MigrationSource):
    """Flaches Verzeichnis mit *.up.sql / *.down.sql Dateien"""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def list_names(self) -> List[str]:
        try:
            return [entry.name for entry in self.directory.iterdir() if entry.is_file()]
        except OSError as e:
            raise DiscoveryError(f"Cannot read migrations directory {self.directory}: {e}") from e

    def read(self, name: str) -> str:
        path = self.directory / name
        try:
            return path.read_text(encoding='utf-8')
        except OSError as e:
            raise DiscoveryError(f"Cannot read migration file {path}: {e}") from e

    def describe(self, name: str) -> str:
        return str(self.directory / name)

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.directory)!r})"


class MemorySource(MigrationSource):
    """Migrationen aus einem Dict: Dateiname -> SQL"""

    def __init__(self, files: Dict[str, str]):
        self.files = dict(files)

    def list_names(self) -> List[str]:
        return list(self.files.keys())

    def read(self, name: str) -> str:
        try:
            return self.files[name]
        except KeyError as e:
            raise DiscoveryError(f"Unknown migration: {name}") from e

    def __repr__(self) -> str:
        return f"MemorySource({len(self.files)} files)"
