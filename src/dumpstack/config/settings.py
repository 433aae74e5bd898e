"""
Application settings and configuration management.

Loads configuration from environment variables (and an optional .env file)
with sensible defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from ..exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = Field(default="INFO")

    # Artifact storage
    backup_dir: Path = Field(default=Path("./backups"))
    backup_retention_days: int = Field(default=7, ge=0)
    backup_retention_overrides: dict[str, int] = Field(default_factory=dict)
    backup_min_size_bytes: int = Field(default=1024, ge=0)
    backup_compression: bool = Field(default=True)
    backup_compression_level: int = Field(default=6, ge=1, le=9)

    # Subprocess execution
    backup_command_timeout_seconds: int = Field(default=3600, ge=1)
    backup_preflight_timeout_seconds: int = Field(default=30, ge=1)
    backup_tools_dir: Optional[Path] = Field(default=None)

    # Provider registration
    backup_targets_file: Optional[Path] = Field(default=None)
    backup_providers: str = Field(default="postgres")

    # PostgreSQL
    postgres_container: str = Field(default="postgres")
    postgres_user: str = Field(default="postgres")
    postgres_database: str = Field(default="postgres")
    postgres_password_env: str = Field(default="POSTGRES_PASSWORD")

    # TimescaleDB
    timescaledb_container: str = Field(default="timescaledb")
    timescaledb_user: str = Field(default="postgres")
    timescaledb_database: str = Field(default="postgres")
    timescaledb_password_env: str = Field(default="TIMESCALEDB_PASSWORD")

    # MySQL (empty database means --all-databases)
    mysql_container: str = Field(default="mysql")
    mysql_user: str = Field(default="root")
    mysql_database: str = Field(default="")
    mysql_password_env: str = Field(default="MYSQL_ROOT_PASSWORD")

    # MongoDB (empty database means every database)
    mongo_container: str = Field(default="mongo")
    mongo_user: str = Field(default="")
    mongo_database: str = Field(default="")
    mongo_password_env: str = Field(default="MONGO_INITDB_ROOT_PASSWORD")

    # Redis
    redis_container: str = Field(default="redis")
    redis_user: str = Field(default="")
    redis_database: str = Field(default="")
    redis_password_env: str = Field(default="REDIS_PASSWORD")

    # Vault (the credential is the token)
    vault_container: str = Field(default="vault")
    vault_user: str = Field(default="")
    vault_database: str = Field(default="")
    vault_password_env: str = Field(default="VAULT_TOKEN")

    @property
    def provider_names(self) -> list[str]:
        """Engines registered by default when no targets file is configured."""
        return [
            name.strip().lower()
            for name in self.backup_providers.split(",")
            if name.strip()
        ]

    def engine_defaults(self, engine: str) -> dict:
        """
        Get the default target parameters for an engine.

        Args:
            engine: Engine identifier (postgres, mysql, ...)

        Returns:
            Dict with container, user, database and password_env keys
        """
        return {
            "container": getattr(self, f"{engine}_container"),
            "user": getattr(self, f"{engine}_user"),
            "database": getattr(self, f"{engine}_database"),
            "password_env": getattr(self, f"{engine}_password_env"),
        }


def load_settings(**overrides) -> Settings:
    """
    Load settings from the environment.

    Keyword overrides (typically from CLI options) take precedence over
    environment variables. None values are ignored.

    Raises:
        ConfigurationError: If a value is missing or malformed
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except (ValidationError, SettingsError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
