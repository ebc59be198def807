"""Configuration management for SQL-Migrator."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILENAME, DEFAULT_LEDGER_TABLE, STATEMENT_SEPARATOR
from .errors import ConfigError
from .utils import ensure_dir, expand_path, is_valid_identifier

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_TEMPLATE_PATH = Path(__file__).with_name("config.toml")


def _load_default_template() -> dict[str, Any]:
    """Load the packaged default config template."""
    with open(DEFAULT_CONFIG_TEMPLATE_PATH, "rb") as f:
        return tomllib.load(f)


def _merge_config_data(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge config dictionaries recursively."""
    merged = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = _merge_config_data(base_value, value)
        else:
            merged[key] = value
    return merged


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    driver: str = "sqlite3"
    dsn: str | None = None
    connect_args: dict[str, Any] = Field(default_factory=dict)


class MigrationsConfig(BaseModel):
    """Migrations directory and ledger configuration."""

    directory: Path = Path("migrations")
    ledger_table: str = DEFAULT_LEDGER_TABLE
    statement_separator: str = Field(default=STATEMENT_SEPARATOR, min_length=1, max_length=1)
    respect_quotes: bool = False

    @field_validator("directory", mode="before")
    @classmethod
    def expand_directory(cls, v: str | Path) -> Path:
        """Expand path strings with ~ and environment variables."""
        if isinstance(v, str):
            return expand_path(v)
        return v

    @field_validator("ledger_table")
    @classmethod
    def validate_ledger_table(cls, v: str) -> str:
        """Only accept plain SQL identifiers for the ledger table."""
        if not is_valid_identifier(v):
            raise ValueError(f"ledger_table must be a plain SQL identifier, got {v!r}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown logging level {v!r}")
        return level


class Config(BaseModel):
    """Configuration for SQL-Migrator."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def migrations_dir(self) -> Path:
        """Directory holding the migration scripts."""
        return self.migrations.directory

    @property
    def ledger_table(self) -> str:
        """Ledger table name."""
        return self.migrations.ledger_table

    @property
    def log_level(self) -> str:
        """Logging level name."""
        return self.logging.level

    def save(self, config_path: Path) -> None:
        """
        Write configuration to a TOML file.

        Args:
            config_path: Destination path
        """
        data = self.model_dump(mode="json")
        # TOML has no null value
        if data["database"]["dsn"] is None:
            del data["database"]["dsn"]
        ensure_dir(config_path.parent)
        with open(config_path, "wb") as f:
            tomli_w.dump(data, f)


def get_config_path() -> Path:
    """
    Get configuration file path.

    Priority:
    1. SQL_MIGRATOR_CONFIG environment variable
    2. Default: ./sql-migrator.toml

    Returns:
        Path to config file
    """
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        return expand_path(env_config)

    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def create_default_config() -> Config:
    """Create default configuration from the packaged template."""
    return Config.model_validate(_load_default_template())


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from TOML file using Pydantic validation.

    A missing file yields the packaged defaults.

    Args:
        config_path: Optional custom config path

    Returns:
        Config instance with validated values

    Raises:
        ConfigError: If the file cannot be parsed or fails validation
    """
    if config_path is None:
        config_path = get_config_path()

    defaults = _load_default_template()
    data: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
    else:
        logger.debug("Config file %s not found, using defaults", config_path)

    try:
        return Config.model_validate(_merge_config_data(defaults, data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
