"""
Provider models.

A Provider is the immutable, fully-resolved description of one backup
target: which engine it is, the command templates that dump and restore
it, and the references used for preflight checks and credentials.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.templates import render_command


class ProviderType(str, Enum):
    """Supported datastore engines."""

    POSTGRES = "postgres"
    TIMESCALEDB = "timescaledb"
    MYSQL = "mysql"
    MONGO = "mongo"
    REDIS = "redis"
    VAULT = "vault"
    CUSTOM = "custom"


class ExecMode(str, Enum):
    """How provider commands reach the target."""

    DOCKER = "docker"
    NETWORK = "network"


class Provider(BaseModel):
    """A registered backup target with its command templates."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique provider key, used in artifact names")
    engine: ProviderType
    mode: ExecMode = Field(default=ExecMode.DOCKER)

    dump_command: tuple[str, ...] = Field(
        ..., description="Template writing the backup stream to stdout"
    )
    restore_command: tuple[str, ...] = Field(
        ..., description="Template reading the backup stream from stdin"
    )
    preflight_command: Optional[tuple[str, ...]] = Field(
        default=None, description="Template probing that the target is reachable"
    )

    container_ref: Optional[str] = Field(
        default=None, description="Container checked during preflight"
    )
    credential_ref: Optional[str] = Field(
        default=None, description="Name of the secret holding the credential"
    )
    credential_env: Optional[str] = Field(
        default=None, description="Variable the client tool reads the credential from"
    )

    parameters: dict[str, str] = Field(default_factory=dict)
    file_extension: str = Field(default="bin")
    retention_days: Optional[int] = Field(default=None, ge=0)
    restore_notice: Optional[str] = Field(default=None)

    def render_dump(self) -> list[str]:
        """Render the dump command for this provider."""
        return render_command(self.dump_command, self.parameters)

    def render_restore(self) -> list[str]:
        """Render the restore command for this provider."""
        return render_command(self.restore_command, self.parameters)

    def render_preflight(self) -> Optional[list[str]]:
        """Render the preflight probe, if the provider has one."""
        if not self.preflight_command:
            return None
        return render_command(self.preflight_command, self.parameters)

    @property
    def target_label(self) -> str:
        """Human-readable location of the target."""
        if self.mode == ExecMode.DOCKER and self.container_ref:
            return f"container {self.container_ref}"
        host = self.parameters.get("host")
        if host:
            return f"{host}:{self.parameters.get('port', '')}".rstrip(":")
        return "local"
