"""
Provider registry.

Static lookup table mapping provider names to Providers, built once at
startup from the targets file or, when there is none, from settings.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import ValidationError

from dumpstack.config import Settings
from dumpstack.exceptions import ConfigurationError
from dumpstack.models import Provider, ProviderType, RetentionPolicy, TargetConfig, TargetsFile

from .base_engine import BaseProviderEngine
from .custom_engine import CustomEngine
from .mongo_engine import MongoEngine
from .mysql_engine import MySQLEngine
from .postgres_engine import PostgresEngine, TimescaleDBEngine
from .redis_engine import RedisEngine
from .vault_engine import VaultEngine

logger = logging.getLogger(__name__)

ENGINES = {
    ProviderType.POSTGRES: PostgresEngine,
    ProviderType.TIMESCALEDB: TimescaleDBEngine,
    ProviderType.MYSQL: MySQLEngine,
    ProviderType.MONGO: MongoEngine,
    ProviderType.REDIS: RedisEngine,
    ProviderType.VAULT: VaultEngine,
    ProviderType.CUSTOM: CustomEngine,
}


def get_provider_engine(engine_type: ProviderType) -> BaseProviderEngine:
    """
    Get the engine for a datastore type.

    Args:
        engine_type: Type of datastore

    Returns:
        Engine instance

    Raises:
        ConfigurationError: If the engine is not supported
    """
    engine_class = ENGINES.get(engine_type)
    if not engine_class:
        raise ConfigurationError(f"Unsupported engine: {engine_type}")

    return engine_class()


def load_targets_file(path: Path) -> TargetsFile:
    """
    Load and validate a targets file.

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read targets file '{path}': {e}") from e

    try:
        return TargetsFile.model_validate_json(content)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid targets file '{path}': {e}") from e


def default_targets(settings: Settings) -> list[TargetConfig]:
    """
    Build one docker-mode target per engine listed in BACKUP_PROVIDERS.

    Each target is named after its engine and takes its parameters from the
    <ENGINE>_CONTAINER / _USER / _DATABASE / _PASSWORD_ENV settings.
    """
    targets = []
    for name in settings.provider_names:
        try:
            engine = ProviderType(name)
        except ValueError:
            raise ConfigurationError(
                f"Unknown provider in BACKUP_PROVIDERS: '{name}'"
            ) from None

        if engine == ProviderType.CUSTOM:
            raise ConfigurationError("Custom providers must be defined in a targets file")

        try:
            targets.append(
                TargetConfig(name=name, engine=engine, **settings.engine_defaults(name))
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings for '{name}': {e}") from e

    return targets


class ProviderRegistry:
    """Immutable name -> Provider lookup."""

    def __init__(self, providers: Iterable[Provider]):
        self._providers: dict[str, Provider] = {}
        for provider in providers:
            if provider.name in self._providers:
                raise ConfigurationError(f"Duplicate provider: {provider.name}")
            self._providers[provider.name] = provider

    @classmethod
    def from_targets(cls, targets: Iterable[TargetConfig]) -> "ProviderRegistry":
        """Build providers from target configurations."""
        return cls(
            get_provider_engine(target.engine).build_provider(target)
            for target in targets
            if target.enabled
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        """
        Build the registry from settings.

        Uses BACKUP_TARGETS_FILE when set, otherwise the per-engine defaults.
        """
        if settings.backup_targets_file:
            targets = load_targets_file(settings.backup_targets_file).enabled_targets
            logger.debug(
                f"Loaded {len(targets)} target(s) from {settings.backup_targets_file}"
            )
        else:
            targets = default_targets(settings)

        return cls.from_targets(targets)

    def resolve(self, name: str) -> Provider:
        """
        Look up a provider by name.

        Raises:
            ConfigurationError: If no provider has that name
        """
        provider = self._providers.get(name)
        if provider is None:
            known = ", ".join(self.names()) or "none"
            raise ConfigurationError(
                f"Unknown provider '{name}' (registered: {known})"
            )
        return provider

    def names(self) -> list[str]:
        """Provider names in registration order."""
        return list(self._providers)

    def retention_policy(self, settings: Settings) -> RetentionPolicy:
        """
        Build the retention policy.

        Per-target retention_days apply first; BACKUP_RETENTION_OVERRIDES
        take precedence over them.
        """
        overrides = {
            provider.name: provider.retention_days
            for provider in self
            if provider.retention_days is not None
        }
        overrides.update(settings.backup_retention_overrides)
        return RetentionPolicy(
            max_age_days=settings.backup_retention_days, overrides=overrides
        )

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers
