"""
MySQL engine using mysqldump.
"""

from typing import Optional

from dumpstack.models import ProviderType, TargetConfig

from .base_engine import BaseProviderEngine


class MySQLEngine(BaseProviderEngine):
    """
    Engine for MySQL databases using mysqldump.

    Produces .sql files that can be restored using mysql client. An empty
    database name dumps every database.
    """

    default_port = 3306
    default_user = "root"

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.MYSQL

    @property
    def file_extension(self) -> str:
        return "sql"

    @property
    def credential_env(self) -> Optional[str]:
        # Keeps the password off the command line
        return "MYSQL_PWD"

    def dump_command(self, target: TargetConfig) -> list[str]:
        cmd = [
            "mysqldump",
            *self.connection_args(target),
            "--user={user}",
            "--single-transaction",  # Consistent snapshot for InnoDB
            "--routines",  # Include stored procedures
            "--triggers",  # Include triggers
            "--events",  # Include events
            "--quick",  # Retrieve rows one at a time
            "--hex-blob",  # Dump binary as hex
        ]

        if target.database:
            cmd += ["--databases", "{database}"]
        else:
            cmd.append("--all-databases")

        return cmd

    def restore_command(self, target: TargetConfig) -> list[str]:
        # Dumps carry their own CREATE DATABASE / USE statements
        return ["mysql", *self.connection_args(target), "--user={user}"]

    def network_preflight_command(self, target: TargetConfig) -> Optional[list[str]]:
        """Test MySQL reachability using mysqladmin ping."""
        return [
            "mysqladmin",
            *self.connection_args(target),
            "--user={user}",
            "ping",
        ]
