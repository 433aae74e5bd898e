"""
PostgreSQL and TimescaleDB engines using pg_dump.

PostgreSQL targets produce plain SQL restored with psql. TimescaleDB
targets use pg_dump's custom format, restored with pg_restore.
"""

from typing import Optional

from dumpstack.models import ProviderType, TargetConfig

from .base_engine import BaseProviderEngine


class PostgresEngine(BaseProviderEngine):
    """
    Engine for PostgreSQL databases using pg_dump.

    Produces .sql files that can be restored using psql.
    """

    default_port = 5432
    default_user = "postgres"
    default_database = "postgres"

    # pg_dump options (common for both modes)
    dump_options = [
        "--no-owner",  # Don't output ownership commands
        "--no-privileges",  # Don't output privilege commands
        "--clean",  # Include DROP statements
        "--if-exists",  # Use IF EXISTS with DROP
    ]

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.POSTGRES

    @property
    def file_extension(self) -> str:
        return "sql"

    @property
    def credential_env(self) -> Optional[str]:
        return "PGPASSWORD"

    def dump_command(self, target: TargetConfig) -> list[str]:
        return [
            "pg_dump",
            *self.connection_args(target),
            "--username={user}",
            "--no-password",  # Don't prompt for password (use PGPASSWORD env)
            *self.dump_options,
            "--dbname={database}",
        ]

    def restore_command(self, target: TargetConfig) -> list[str]:
        return [
            "psql",
            *self.connection_args(target),
            "--username={user}",
            "--no-password",
            "--quiet",
            "--set=ON_ERROR_STOP=1",  # Non-zero exit on the first failing statement
            "--dbname={database}",
        ]

    def network_preflight_command(self, target: TargetConfig) -> Optional[list[str]]:
        """Test PostgreSQL reachability using pg_isready."""
        return [
            "pg_isready",
            *self.connection_args(target),
            "--username={user}",
            "--dbname={database}",
        ]


class TimescaleDBEngine(PostgresEngine):
    """
    Engine for TimescaleDB using pg_dump's custom archive format.

    Produces .dump files that can be restored using pg_restore.
    """

    dump_options = PostgresEngine.dump_options + ["--format=custom"]

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.TIMESCALEDB

    @property
    def file_extension(self) -> str:
        return "dump"

    def restore_command(self, target: TargetConfig) -> list[str]:
        return [
            "pg_restore",
            *self.connection_args(target),
            "--username={user}",
            "--no-password",
            "--no-owner",
            "--clean",
            "--if-exists",
            "--exit-on-error",
            "--dbname={database}",
        ]
