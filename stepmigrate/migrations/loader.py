"""
Laden und Validieren von Migrations-Dateien

Dateinamen: <nummer>[-<beschreibung>].<up|down>.sql
"""

import re
from pathlib import Path
from typing import Dict, Optional, Tuple, Union
from loguru import logger

from .errors import BadFilenameError, DuplicateMigrationError, InvalidFilenameError, MissingMigrationError
from .models import Direction, MigrationFile, MigrationSet
from .source import DirectorySource, MigrationSource

_NUMBER = re.compile(r'[0-9]+')


def parse_filename(name: str) -> Optional[Tuple[int, Direction]]:
    """
    Parst einen Dateinamen

    Returns:
        (nummer, richtung) oder None wenn keine Migrations-Datei

    Raises:
        InvalidFilenameError: Nummer ist keine vorzeichenlose Ganzzahl
        BadFilenameError: Richtung weder 'up' noch 'down'
    """
    parts = name.split('.')
    if len(parts) != 3 or parts[2] != 'sql':
        return None

    number_str = parts[0].split('-')[0]
    if not _NUMBER.fullmatch(number_str):
        raise InvalidFilenameError(name)

    number = int(number_str)

    try:
        direction = Direction(parts[1])
    except ValueError:
        raise BadFilenameError(name) from None

    return number, direction


class MigrationSetLoader:
    """
    Findet Migrationen in einer Quelle und baut den Up/Down-Index

    - Fremde Dateien (README etc.) werden ignoriert
    - Nummer 0 wird indiziert, aber nie ausgeführt (Version 0 = nichts angewendet)
    - Für jede Nummer in [1, max-1] muss up und down existieren
    - Erster Fehler bricht ab
    """

    def load(self, source: Union[MigrationSource, str, Path]) -> MigrationSet:
        """
        Lädt und validiert alle Migrationen

        Args:
            source: MigrationSource oder Verzeichnis-Pfad

        Returns:
            Validiertes MigrationSet
        """
        if not isinstance(source, MigrationSource):
            source = DirectorySource(source)

        migration_set = MigrationSet(source=source)
        indexes: Dict[Direction, Dict[int, MigrationFile]] = {
            Direction.UP: migration_set.up,
            Direction.DOWN: migration_set.down,
        }

        for name in sorted(source.list_names()):
            parsed = parse_filename(name)
            if parsed is None:
                logger.debug(f"Skipping non-migration file: {name}")
                continue

            number, direction = parsed
            index = indexes[direction]
            if number in index:
                raise DuplicateMigrationError(number, direction.value, index[number].name, name)

            index[number] = MigrationFile(
                number=number,
                direction=direction,
                name=name,
                path=source.describe(name),
            )
            migration_set.max_number = max(migration_set.max_number, number)

        self._validate(migration_set)

        logger.debug(
            f"Loaded {len(migration_set.up)} up / {len(migration_set.down)} down migrations "
            f"from {source!r} (latest: {migration_set.max_number})"
        )
        return migration_set

    @staticmethod
    def _validate(migration_set: MigrationSet):
        """Prüft Vollständigkeit für [1, max_number - 1]"""
        # Die neueste Migration braucht (noch) keine Down-Datei
        for number in range(1, migration_set.max_number):
            if number not in migration_set.up:
                raise MissingMigrationError(number, Direction.UP.value)
            if number not in migration_set.down:
                raise MissingMigrationError(number, Direction.DOWN.value)
