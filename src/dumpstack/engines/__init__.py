"""
Provider engines for the supported datastores.

Each engine builds the dump/restore command templates for its datastore.
"""

from .base_engine import BaseProviderEngine
from .custom_engine import CustomEngine
from .mongo_engine import MongoEngine
from .mysql_engine import MySQLEngine
from .postgres_engine import PostgresEngine, TimescaleDBEngine
from .redis_engine import RedisEngine
from .vault_engine import VaultEngine
from .registry import (
    ENGINES,
    ProviderRegistry,
    default_targets,
    get_provider_engine,
    load_targets_file,
)

__all__ = [
    "BaseProviderEngine",
    "CustomEngine",
    "MongoEngine",
    "MySQLEngine",
    "PostgresEngine",
    "TimescaleDBEngine",
    "RedisEngine",
    "VaultEngine",
    "ENGINES",
    "ProviderRegistry",
    "default_targets",
    "get_provider_engine",
    "load_targets_file",
]
