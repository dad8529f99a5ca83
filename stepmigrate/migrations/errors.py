"""Fehlerklassen für Migrationen"""

from typing import Optional

from ..backends.base import ErrorDiagnostics


class MigrationError(Exception):
    """Basisklasse aller Migrations-Fehler"""
    pass


class DiscoveryError(MigrationError):
    """Migrations-Verzeichnis oder -Datei nicht lesbar"""
    pass


class MigrationSetError(MigrationError):
    """Migrations-Set ist ungültig (wird vor jedem SQL erkannt)"""
    pass


class InvalidFilenameError(MigrationSetError):
    """Nummer im Dateinamen ist keine gültige vorzeichenlose Ganzzahl"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid version filename {name}")


class BadFilenameError(MigrationSetError):
    """Richtung im Dateinamen ist weder 'up' noch 'down'"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Bad filename: {name}")


class DuplicateMigrationError(MigrationSetError):
    """Zwei Dateien für dieselbe Nummer und Richtung"""

    def __init__(self, number: int, direction: str, first: str, second: str):
        self.number = number
        self.direction = direction
        super().__init__(
            f"Duplicate {direction} migration {number}: {first} and {second}"
        )


class MissingMigrationError(MigrationSetError):
    """Benötigte Up- oder Down-Datei fehlt"""

    def __init__(self, number: int, direction: str):
        self.number = number
        self.direction = direction
        super().__init__(f"Missing {direction.capitalize()} migration {number}")


class InvalidTargetError(MigrationError):
    """Zielversion liegt außerhalb von [-1, max_number]"""

    def __init__(self, target: int, max_number: int):
        self.target = target
        self.max_number = max_number
        super().__init__(
            f"Target version {target} out of range (latest is {max_number}, -1 = latest)"
        )


class VersionReadError(MigrationError):
    """Persistierte Version konnte nicht gelesen werden"""
    pass


class VersionWriteError(MigrationError):
    """Tracking-Tabelle konnte nicht geschrieben werden"""
    pass


class ExecutionError(MigrationError):
    """SQL einer Migrations-Datei ist fehlgeschlagen"""

    def __init__(self, path: str, version: int, diagnostics: Optional[ErrorDiagnostics] = None):
        self.path = path
        self.version = version
        self.diagnostics = diagnostics or ErrorDiagnostics()
        message = f"executing {path}"
        if self.diagnostics.message:
            message = f"{message}: {self.diagnostics.message}"
        super().__init__(message)


class CommitError(MigrationError):
    """Commit eines Migrations-Schritts ist fehlgeschlagen"""

    def __init__(self, path: str, version: int):
        self.path = path
        self.version = version
        super().__init__(f"committing {path} (version {version})")


class MigrationCancelledError(MigrationError):
    """Lauf wurde zwischen zwei Schritten abgebrochen"""

    def __init__(self, version: int):
        self.version = version
        super().__init__(f"Migration cancelled at version {version}")
