"""
Vault engine using integrated-storage (raft) snapshots.
"""

from typing import Optional

from dumpstack.models import ExecMode, ProviderType, TargetConfig

from .base_engine import BaseProviderEngine


class VaultEngine(BaseProviderEngine):
    """
    Engine for HashiCorp Vault raft snapshots.

    The credential is the Vault token, passed as VAULT_TOKEN.
    """

    default_port = 8200

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.VAULT

    @property
    def file_extension(self) -> str:
        return "snap"

    @property
    def credential_env(self) -> Optional[str]:
        return "VAULT_TOKEN"

    def connection_args(self, target: TargetConfig) -> list[str]:
        if target.mode == ExecMode.NETWORK:
            return ["-address=https://{host}:{port}"]
        return []

    def dump_command(self, target: TargetConfig) -> list[str]:
        return [
            "vault", "operator", "raft", "snapshot", "save",
            *self.connection_args(target),
            "/dev/stdout",
        ]

    def restore_command(self, target: TargetConfig) -> list[str]:
        return [
            "vault", "operator", "raft", "snapshot", "restore",
            *self.connection_args(target),
            "-force",
            "/dev/stdin",
        ]

    def network_preflight_command(self, target: TargetConfig) -> Optional[list[str]]:
        """vault status exits 2 while sealed, which counts as unreachable."""
        return ["vault", "status", *self.connection_args(target)]
