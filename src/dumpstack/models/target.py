"""
Target configuration models.

Targets describe what to back up. They are read from the targets file
(or derived from settings) and turned into Providers by the engines.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.validators import (
    validate_env_name,
    validate_hostname,
    validate_identifier,
    validate_port,
    validate_provider_name,
)
from .provider import ExecMode, ProviderType


class TargetConfig(BaseModel):
    """Configuration for a single backup target."""

    name: str = Field(..., description="Unique provider name")
    engine: ProviderType = Field(..., description="Datastore engine")
    mode: ExecMode = Field(default=ExecMode.DOCKER)
    enabled: bool = Field(default=True)

    # Connection details
    container: str = Field(default="", description="Container name (docker mode)")
    host: str = Field(default="", description="Host (network mode)")
    port: Optional[int] = Field(default=None, description="Port (network mode)")
    user: str = Field(default="")
    database: str = Field(default="", description="Empty means all databases")
    auth_db: str = Field(default="admin", description="Authentication database (mongo)")

    # Credential is referenced by environment variable name, never inlined
    password_env: str = Field(default="")

    # Retention override in days
    retention_days: Optional[int] = Field(default=None, ge=0)

    # Custom engine only
    dump_command: Optional[list[str]] = None
    restore_command: Optional[list[str]] = None
    preflight_command: Optional[list[str]] = None
    file_extension: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        ok, error = validate_provider_name(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("container", "user", "database", "auth_db")
    @classmethod
    def validate_identifiers(cls, v: str) -> str:
        ok, error = validate_identifier(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not v:
            return v
        ok, error = validate_hostname(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("port")
    @classmethod
    def validate_port_range(cls, v: Optional[int]) -> Optional[int]:
        """Validate port is in valid range."""
        if v is None:
            return v
        ok, error = validate_port(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("password_env")
    @classmethod
    def validate_password_env(cls, v: str) -> str:
        ok, error = validate_env_name(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("file_extension")
    @classmethod
    def validate_extension(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.replace(".", "").isalnum():
            raise ValueError("File extension must be alphanumeric (dots allowed)")
        return v

    @model_validator(mode="after")
    def check_custom_commands(self) -> "TargetConfig":
        if self.engine == ProviderType.CUSTOM:
            if not self.dump_command or not self.restore_command:
                raise ValueError(
                    "Custom targets require dump_command and restore_command"
                )
        return self


class TargetsFile(BaseModel):
    """Contents of the targets file."""

    targets: list[TargetConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_names(self) -> "TargetsFile":
        seen = set()
        for target in self.targets:
            if target.name in seen:
                raise ValueError(f"Duplicate target name: {target.name}")
            seen.add(target.name)
        return self

    @property
    def enabled_targets(self) -> list[TargetConfig]:
        """Targets that should be registered."""
        return [target for target in self.targets if target.enabled]
