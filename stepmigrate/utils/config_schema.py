"""Pydantic schemas for configuration validation"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from ..migrations.version_store import DEFAULT_VERSION_TABLE, validate_table_name


class DatabaseConfig(BaseModel):
    """Target database configuration (SQLite file or PostgreSQL URL)"""
    path: str = Field(default="data/app.db", description="Path to the SQLite database")
    postgres_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL, takes precedence over path"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Path must not be empty"""
        if not v.strip():
            raise ValueError("Database path must not be empty")
        return v


class MigrationsConfig(BaseModel):
    """Migration source and target"""
    directory: str = Field(default="migrations", description="Directory with *.up.sql / *.down.sql")
    target: int = Field(
        default=-1,
        ge=-1,
        description="Target version (-1 = latest)"
    )
    version_table: str = Field(default=DEFAULT_VERSION_TABLE)

    @field_validator('version_table')
    @classmethod
    def validate_version_table(cls, v: str) -> str:
        """Plain SQL identifier only"""
        return validate_table_name(v)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    path: Optional[str] = Field(default=None, description="Optional log file")
    diagnostics: bool = Field(
        default=True,
        description="Log migration plan, files and SQL error details"
    )

    @field_validator('level', mode='before')
    @classmethod
    def upper_level(cls, v):
        """Accept lower case levels"""
        return v.upper() if isinstance(v, str) else v


class MigratorConfig(BaseModel):
    """Root configuration"""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
