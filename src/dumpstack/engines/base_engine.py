"""
Base provider engine defining the interface for all datastore engines.

An engine turns a TargetConfig into a Provider: it supplies the dump and
restore command templates for the engine's client tools and wraps them
for the target's execution mode.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from dumpstack.exceptions import ConfigurationError
from dumpstack.models import ExecMode, Provider, ProviderType, TargetConfig

logger = logging.getLogger(__name__)

# Succeeds only while the container is running
DOCKER_PREFLIGHT = ("docker", "exec", "{container}", "true")


class BaseProviderEngine(ABC):
    """
    Abstract base class for datastore engines.

    Subclasses implement the tool-level dump and restore commands. In docker
    mode the base class runs them through ``docker exec -i`` and forwards the
    credential variable into the container by name.
    """

    supported_modes: tuple[ExecMode, ...] = (ExecMode.DOCKER, ExecMode.NETWORK)
    default_port: Optional[int] = None
    default_user: str = ""
    default_database: str = ""
    restore_notice: Optional[str] = None

    @property
    @abstractmethod
    def engine_type(self) -> ProviderType:
        """Return the engine this class handles."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for uncompressed backups."""
        pass

    @property
    def credential_env(self) -> Optional[str]:
        """Variable the client tool reads its credential from."""
        return None

    @abstractmethod
    def dump_command(self, target: TargetConfig) -> list[str]:
        """
        Build the tool command that writes a backup to stdout.

        Args:
            target: Target configuration

        Returns:
            argv template with placeholders
        """
        pass

    @abstractmethod
    def restore_command(self, target: TargetConfig) -> list[str]:
        """
        Build the tool command that reads a backup from stdin.

        Args:
            target: Target configuration

        Returns:
            argv template with placeholders
        """
        pass

    def network_preflight_command(self, target: TargetConfig) -> Optional[list[str]]:
        """Probe used in network mode. None skips the reachability check."""
        return None

    def connection_args(self, target: TargetConfig) -> list[str]:
        """Host/port arguments for network mode."""
        if target.mode == ExecMode.NETWORK:
            return ["--host={host}", "--port={port}"]
        return []

    def parameters(self, target: TargetConfig) -> dict[str, str]:
        """Values available to the command templates."""
        port = target.port or self.default_port
        return {
            "container": target.container,
            "host": target.host,
            "port": str(port) if port else "",
            "user": target.user or self.default_user,
            "database": target.database or self.default_database,
            "auth_db": target.auth_db,
        }

    def _check_target(self, target: TargetConfig) -> None:
        if target.mode not in self.supported_modes:
            raise ConfigurationError(
                f"Target '{target.name}': {self.engine_type.value} does not "
                f"support {target.mode.value} mode"
            )
        if target.mode == ExecMode.DOCKER and not target.container:
            raise ConfigurationError(
                f"Target '{target.name}': docker mode requires a container"
            )
        if target.mode == ExecMode.NETWORK and not target.host:
            raise ConfigurationError(
                f"Target '{target.name}': network mode requires a host"
            )

    def _docker_exec(self, target: TargetConfig, command: list[str]) -> list[str]:
        cmd = ["docker", "exec", "-i"]
        if self.credential_env and target.password_env:
            # Value comes from our environment, never from argv
            cmd += ["-e", self.credential_env]
        return cmd + ["{container}"] + command

    def build_provider(self, target: TargetConfig) -> Provider:
        """
        Build the Provider for a target.

        Args:
            target: Target configuration

        Returns:
            Immutable Provider

        Raises:
            ConfigurationError: If the target does not fit this engine
        """
        self._check_target(target)

        dump = self.dump_command(target)
        restore = self.restore_command(target)

        if target.mode == ExecMode.DOCKER:
            dump = self._docker_exec(target, dump)
            restore = self._docker_exec(target, restore)
            preflight = list(DOCKER_PREFLIGHT)
        else:
            preflight = self.network_preflight_command(target)

        logger.debug(f"Built {self.engine_type.value} provider '{target.name}'")

        return Provider(
            name=target.name,
            engine=self.engine_type,
            mode=target.mode,
            dump_command=tuple(dump),
            restore_command=tuple(restore),
            preflight_command=tuple(preflight) if preflight else None,
            container_ref=target.container or None,
            credential_ref=target.password_env or None,
            credential_env=self.credential_env if target.password_env else None,
            parameters=self.parameters(target),
            file_extension=self.file_extension,
            retention_days=target.retention_days,
            restore_notice=self.restore_notice,
        )
