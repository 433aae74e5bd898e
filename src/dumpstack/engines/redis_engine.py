"""
Redis engine streaming RDB snapshots with redis-cli.
"""

from typing import Optional

from dumpstack.models import ExecMode, ProviderType, TargetConfig

from .base_engine import BaseProviderEngine


class RedisEngine(BaseProviderEngine):
    """
    Engine for Redis using ``redis-cli --rdb``.

    The snapshot is transferred over the replication protocol, so no
    BGSAVE/copy round-trip is needed. Restore replaces /data/dump.rdb in the
    container; the server only loads it after a restart.
    """

    supported_modes = (ExecMode.DOCKER,)
    default_port = 6379
    restore_notice = (
        "Redis loads dump.rdb only at startup: restart the container now, "
        "and disable appendonly first if AOF persistence is enabled."
    )

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.REDIS

    @property
    def file_extension(self) -> str:
        return "rdb"

    @property
    def credential_env(self) -> Optional[str]:
        return "REDISCLI_AUTH"

    def dump_command(self, target: TargetConfig) -> list[str]:
        cmd = ["redis-cli"]
        if target.user:
            cmd += ["--user", "{user}"]
        return cmd + ["--rdb", "-"]

    def restore_command(self, target: TargetConfig) -> list[str]:
        return ["sh", "-c", "cat > /data/dump.rdb.restore && mv /data/dump.rdb.restore /data/dump.rdb"]
