"""
Custom engine for targets whose commands are defined in the targets file.
"""

from typing import Optional

from dumpstack.models import Provider, ProviderType, TargetConfig
from dumpstack.utils.templates import check_template

from .base_engine import BaseProviderEngine


class CustomEngine(BaseProviderEngine):
    """
    Engine whose templates come verbatim from the target definition.

    Templates are used without docker wrapping; they may reference
    ``{container}`` themselves. The credential, if any, is exported under
    the password_env name.
    """

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.CUSTOM

    @property
    def file_extension(self) -> str:
        return "bin"

    def dump_command(self, target: TargetConfig) -> list[str]:
        return list(target.dump_command or [])

    def restore_command(self, target: TargetConfig) -> list[str]:
        return list(target.restore_command or [])

    def build_provider(self, target: TargetConfig) -> Provider:
        dump = self.dump_command(target)
        restore = self.restore_command(target)
        check_template(dump)
        check_template(restore)
        if target.preflight_command:
            check_template(target.preflight_command)

        return Provider(
            name=target.name,
            engine=self.engine_type,
            mode=target.mode,
            dump_command=tuple(dump),
            restore_command=tuple(restore),
            preflight_command=(
                tuple(target.preflight_command) if target.preflight_command else None
            ),
            container_ref=target.container or None,
            credential_ref=target.password_env or None,
            credential_env=target.password_env or None,
            parameters=self.parameters(target),
            file_extension=target.file_extension or self.file_extension,
            retention_days=target.retention_days,
        )
