"""
Database Migrations System

Nummerierte SQL-Dateien (<nr>[-<name>].up.sql / .down.sql) bringen das
Schema vor- oder zurück. Die aktuelle Version steht in der Ziel-Datenbank.
"""

from .errors import (
    BadFilenameError,
    CommitError,
    DiscoveryError,
    DuplicateMigrationError,
    ExecutionError,
    InvalidFilenameError,
    InvalidTargetError,
    MigrationCancelledError,
    MigrationError,
    MigrationSetError,
    MissingMigrationError,
    VersionReadError,
    VersionWriteError,
)
from .loader import MigrationSetLoader, parse_filename
from .models import LATEST, Direction, MigrationFile, MigrationSet, MigrationStep
from .runner import MigrationRunner, migrate_database
from .source import DirectorySource, MemorySource, MigrationSource
from .version_store import DEFAULT_VERSION_TABLE, VersionStore

__all__ = [
    'BadFilenameError',
    'CommitError',
    'DEFAULT_VERSION_TABLE',
    'Direction',
    'DirectorySource',
    'DiscoveryError',
    'DuplicateMigrationError',
    'ExecutionError',
    'InvalidFilenameError',
    'InvalidTargetError',
    'LATEST',
    'MemorySource',
    'MigrationCancelledError',
    'MigrationError',
    'MigrationFile',
    'MigrationRunner',
    'MigrationSet',
    'MigrationSetError',
    'MigrationSetLoader',
    'MigrationSource',
    'MigrationStep',
    'MissingMigrationError',
    'VersionReadError',
    'VersionStore',
    'VersionWriteError',
    'migrate_database',
    'parse_filename',
]
