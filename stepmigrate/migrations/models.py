"""Datenmodelle für Migrations-Dateien und -Sets"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .errors import InvalidTargetError, MissingMigrationError
from .source import MigrationSource

# Zielversion -1 = höchste gefundene Migration
LATEST = -1


class Direction(Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class MigrationFile:
    """Eine gefundene Migrations-Datei"""
    number: int
    direction: Direction
    name: str
    path: str


@dataclass(frozen=True)
class MigrationStep:
    """Ein auszuführender Schritt: Datei plus Version nach dem Commit"""
    file: MigrationFile
    resulting_version: int


@dataclass
class MigrationSet:
    """
    Index aller Migrationen einer Quelle

    Wird bei jedem Laden neu aufgebaut, nie gecacht.
    """
    source: MigrationSource
    up: Dict[int, MigrationFile] = field(default_factory=dict)
    down: Dict[int, MigrationFile] = field(default_factory=dict)
    max_number: int = 0

    def resolve_target(self, target_version: int) -> int:
        """Löst LATEST auf und prüft den Bereich [0, max_number]"""
        if target_version == LATEST:
            return self.max_number
        if target_version < 0 or target_version > self.max_number:
            raise InvalidTargetError(target_version, self.max_number)
        return target_version

    def steps(self, current_version: int, target_version: int) -> List[MigrationStep]:
        """
        Berechnet die Schritte von current_version nach target_version

        Aufwärts: up(i) für i = current+1 .. target, Version danach i
        Abwärts: down(i) für i = current .. target+1, Version danach i-1

        Ziel == aktuelle Version ist immer ein No-op, auch wenn die
        Version über max_number liegt.

        Raises:
            InvalidTargetError: Ziel außerhalb von [-1, max_number]
            MissingMigrationError: Datei für einen Schritt fehlt
        """
        if target_version == current_version:
            return []
        target = self.resolve_target(target_version)
        steps = []

        if target > current_version:
            for number in range(current_version + 1, target + 1):
                steps.append(MigrationStep(self._require(self.up, number, Direction.UP), number))
        elif target < current_version:
            for number in range(current_version, target, -1):
                steps.append(MigrationStep(self._require(self.down, number, Direction.DOWN), number - 1))

        return steps

    def read(self, migration: MigrationFile) -> str:
        """Liest den SQL-Inhalt einer Datei aus der Quelle"""
        return self.source.read(migration.name)

    @staticmethod
    def _require(index: Dict[int, MigrationFile], number: int, direction: Direction) -> MigrationFile:
        migration = index.get(number)
        if migration is None:
            raise MissingMigrationError(number, direction.value)
        return migration
