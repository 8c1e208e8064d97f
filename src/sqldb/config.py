"""Configuration loading and validation for sqldb."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from sqldb.models import SourceKind

MEMORY_DATABASE = ":memory:"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "sqldb.db"


class MigrationsConfig(BaseModel):
    """Where migrations are read from."""

    source: SourceKind = SourceKind.DIRECTORY
    path: Path = Path("migrations")
    package: str | None = None
    subpath: str | None = None
    extension: str = ".sql"

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Normalize the extension to start with a dot."""
        if not v or v == ".":
            raise ValueError("extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @model_validator(mode="after")
    def validate_package(self) -> "MigrationsConfig":
        """A package source needs a package name."""
        if self.source is SourceKind.PACKAGE and not self.package:
            raise ValueError("migrations.package is required when source is 'package'")
        return self


class Config(BaseModel):
    """Root configuration for sqldb."""

    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    log_json: bool = True

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @property
    def in_memory(self) -> bool:
        """Whether the database lives only in memory."""
        return self.database.path == MEMORY_DATABASE

    @property
    def database_path(self) -> Path | None:
        """Get full path to database file, or None for an in-memory database."""
        if self.in_memory:
            return None
        return self.data_dir / self.database.path

    @classmethod
    def load(cls, config_path: Path | str = Path("sqldb.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls.model_validate(apply_env_overrides(yaml_config))

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Environment overrides apply to the defaults as well.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("sqldb.yaml"), Path("sqldb.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls.model_validate(apply_env_overrides({}))

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls.model_validate(apply_env_overrides({}))


def apply_env_overrides(raw: dict) -> dict:
    """Overlay SQLDB_* environment variables onto raw config data."""
    if "SQLDB_DATA_DIR" in os.environ:
        raw["data_dir"] = os.environ["SQLDB_DATA_DIR"]
    if "SQLDB_LOG_LEVEL" in os.environ:
        raw["log_level"] = os.environ["SQLDB_LOG_LEVEL"]
    if "SQLDB_LOG_JSON" in os.environ:
        raw["log_json"] = os.environ["SQLDB_LOG_JSON"].lower() == "true"
    if "SQLDB_DATABASE_PATH" in os.environ:
        raw.setdefault("database", {})["path"] = os.environ["SQLDB_DATABASE_PATH"]
    if "SQLDB_MIGRATIONS_PATH" in os.environ:
        raw.setdefault("migrations", {})["path"] = os.environ["SQLDB_MIGRATIONS_PATH"]
    return raw
