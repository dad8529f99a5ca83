"""Konfiguration laden und verwalten"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from .config_schema import MigratorConfig

DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"

# Umgebungsvariable -> Config-Schlüssel (Dot-Notation)
ENV_VARIABLES = {
    'MIGRATE_DATABASE': 'database.path',
    'MIGRATE_POSTGRES_URL': 'database.postgres_url',
    'MIGRATE_DIR': 'migrations.directory',
    'MIGRATE_TARGET': 'migrations.target',
    'MIGRATE_VERSION_TABLE': 'migrations.version_table',
    'MIGRATE_LOG_LEVEL': 'logging.level',
    'MIGRATE_LOG_FILE': 'logging.path',
    'MIGRATE_LOG': 'logging.diagnostics',
}


class ConfigValidationError(Exception):
    """Custom exception for configuration validation errors"""
    pass


class ConfigLoader:
    """Lädt und verwaltet Konfiguration aus YAML und .env Dateien"""

    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize ConfigLoader

        Args:
            config_path: Path to config.yaml file (None = config/config.yaml, optional)
            overrides: Dot-notation values with highest priority (e.g. from CLI flags)
        """
        # Load environment variables
        load_dotenv()

        self.explicit_path = config_path is not None
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.config = self._load_config()
        self._merge_env_variables()

        for key, value in (overrides or {}).items():
            if value is not None:
                self._set(key, value)

        self._validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Lädt die YAML-Konfiguration"""
        if not self.config_path.exists():
            if self.explicit_path:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
            logger.debug(f"No config file at {self.config_path}, using defaults")
            return {}

        with open(self.config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _merge_env_variables(self):
        """Überschreibt Config-Werte mit Umgebungsvariablen"""
        for variable, key in ENV_VARIABLES.items():
            value = os.getenv(variable)
            if value:
                self._set(key, value)

    def _set(self, key: str, value: Any):
        keys = key.split('.')
        config_ref = self.config

        # Navigate to parent
        for k in keys[:-1]:
            if not isinstance(config_ref.get(k), dict):
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def _validate_config(self):
        """
        Validates configuration using Pydantic schema

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        try:
            validated_config = MigratorConfig(**self.config)
        except ValidationError as e:
            # Format validation errors nicely
            error_messages = []
            for error in e.errors():
                location = " -> ".join(str(loc) for loc in error['loc'])
                message = error['msg']
                error_messages.append(f"  • {location}: {message}")

            error_text = "\n".join([
                "Configuration validation failed:",
                *error_messages,
                "",
                f"Please check {self.config_path} and MIGRATE_* environment variables."
            ])

            logger.error(error_text)
            raise ConfigValidationError(error_text) from e

        # Update config with validated data (ensures all defaults are set)
        self.config = validated_config.model_dump(mode='python')

    def get(self, key: str, default: Any = None) -> Any:
        """
        Holt einen Config-Wert mit Dot-Notation
        Beispiel: config.get('migrations.directory')
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        """Ermöglicht dict-ähnlichen Zugriff"""
        return self.config[key]

    def get_all(self) -> Dict[str, Any]:
        """Gibt die gesamte Konfiguration zurück"""
        return self.config
