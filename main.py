#!/usr/bin/env python3
"""
stepmigrate - SQL-Migrationen für SQLite- und PostgreSQL-Datenbanken
Hauptprogramm
"""

import sys
import argparse
from pathlib import Path
from loguru import logger

# Füge Projekt-Root zum Python-Path hinzu
sys.path.insert(0, str(Path(__file__).parent))

from stepmigrate.backends import BackendFactory
from stepmigrate.migrations import MigrationError, MigrationRunner
from stepmigrate.utils.config_loader import ConfigLoader
from stepmigrate.utils.database import open_postgres, open_sqlite


def setup_logging(config: ConfigLoader):
    """Konfiguriert Logging"""
    log_level = config.get('logging.level', 'INFO')
    log_path = config.get('logging.path')

    # Entferne Standard-Handler
    logger.remove()

    # Console Handler
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
    )

    # File Handler
    if log_path:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
            rotation="10 MB",
            retention="7 days"
        )

    logger.debug("Logging configured")


def open_database(config: ConfigLoader):
    """
    Öffnet die Ziel-Datenbank

    Returns:
        (Verbindung, Backend-Name)
    """
    postgres_url = config.get('database.postgres_url')
    if postgres_url:
        return open_postgres(postgres_url), 'postgres'
    return open_sqlite(config.get('database.path')), 'sqlite'


def create_runner(config: ConfigLoader, connection, backend: str) -> MigrationRunner:
    """Erstellt den Runner aus der Konfiguration"""
    return MigrationRunner(
        BackendFactory.create_backend(connection, backend),
        config.get('migrations.directory'),
        version_table=config.get('migrations.version_table'),
        diagnostics=config.get('logging.diagnostics', True),
    )


def cmd_migrate(runner: MigrationRunner, target: int):
    """Migriert auf die Zielversion"""
    version = runner.run(target)
    print(f"Database at version {version}")
    return 0


def cmd_status(runner: MigrationRunner):
    """Zeigt aktuelle Version und Anzahl ausstehender Schritte"""
    version = runner.current_version()
    pending = runner.plan()

    print("\n=== Migration Status ===")
    print(f"Current version: {version}")
    print(f"Pending migrations: {len(pending)}")
    if pending:
        print(f"Latest version: {pending[-1].resulting_version}")
    print()
    return 0


def cmd_plan(runner: MigrationRunner, target: int):
    """Zeigt die Schritte, ohne sie auszuführen"""
    steps = runner.plan(target)

    print("\n=== Migration Plan ===")
    if not steps:
        print("Nothing to do")
    for step in steps:
        print(f"  {step.file.direction.value:<4} {step.file.path} -> version {step.resulting_version}")
    print()
    return 0


def main(argv=None):
    """Hauptfunktion"""
    parser = argparse.ArgumentParser(
        description='SQL-Migrationen vor- und zurückspielen',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Beispiele:
  %(prog)s migrate               # Auf neueste Version migrieren
  %(prog)s migrate --target 2    # Auf Version 2 (vor oder zurück)
  %(prog)s plan --target 0       # Zeige Schritte bis Version 0
  %(prog)s status                # Zeige aktuelle Version
  %(prog)s migrate --postgres postgresql://user@localhost/app

Konfiguration:
  config/config.yaml, .env oder MIGRATE_* Umgebungsvariablen
        """
    )

    parser.add_argument(
        'command',
        choices=['migrate', 'status', 'plan'],
        help='Befehl zum Ausführen'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Pfad zur Konfigurationsdatei'
    )

    parser.add_argument(
        '--database',
        type=str,
        default=None,
        help='Pfad zur SQLite-Datenbank'
    )

    parser.add_argument(
        '--postgres',
        type=str,
        default=None,
        help='PostgreSQL Verbindungs-URL (statt SQLite)'
    )

    parser.add_argument(
        '--migrations',
        type=str,
        default=None,
        help='Verzeichnis mit den Migrations-Dateien'
    )

    parser.add_argument(
        '--target',
        type=int,
        default=None,
        help='Zielversion (-1 = neueste)'
    )

    args = parser.parse_args(argv)

    # Lade Konfiguration
    try:
        config = ConfigLoader(args.config, overrides={
            'database.path': args.database,
            'database.postgres_url': args.postgres,
            'migrations.directory': args.migrations,
            'migrations.target': args.target,
        })
        setup_logging(config)
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    try:
        connection, backend = open_database(config)
    except Exception as e:
        logger.error(f"Cannot open database: {e}")
        return 1

    try:
        runner = create_runner(config, connection, backend)
        target = config.get('migrations.target', -1)

        if args.command == 'migrate':
            return cmd_migrate(runner, target)
        elif args.command == 'status':
            return cmd_status(runner)
        elif args.command == 'plan':
            return cmd_plan(runner, target)
        else:
            parser.print_help()
            return 1

    except MigrationError as e:
        logger.error(f"Migration failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1
    finally:
        connection.close()


if __name__ == '__main__':
    sys.exit(main())
