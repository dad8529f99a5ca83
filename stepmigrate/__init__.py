"""stepmigrate - nummerierte SQL-Migrationen vor- und zurückspielen"""

__version__ = "0.3.0"

from .migrations import LATEST, MigrationError, MigrationRunner, migrate_database

__all__ = ['LATEST', 'MigrationError', 'MigrationRunner', 'migrate_database', '__version__']
