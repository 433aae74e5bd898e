"""
Credential resolution.

A provider's credential_ref is the name of a secret. Secrets are looked up
in the process environment first, then in the .env file, and handed to
the child process under the client tool's variable (PGPASSWORD, ...).
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from ..models import Provider

logger = logging.getLogger(__name__)


class EnvironmentSecretSource:
    """Resolves secret names from the environment and a dotenv file."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = Path(".env"),
    ):
        self._environ = os.environ if environ is None else environ
        self._file_values: dict[str, str] = {}
        if env_file and Path(env_file).is_file():
            self._file_values = {
                key: value
                for key, value in dotenv_values(env_file).items()
                if value is not None
            }

    def get(self, name: str) -> Optional[str]:
        value = self._environ.get(name)
        if value is None:
            value = self._file_values.get(name)
        return value

    def environment_for(self, provider: Provider) -> dict[str, str]:
        """
        Environment variables carrying the provider's credential.

        A reference that cannot be resolved is logged and skipped; the
        command then runs with whatever authentication the target allows.
        """
        if not provider.credential_ref or not provider.credential_env:
            return {}

        value = self.get(provider.credential_ref)
        if value is None:
            logger.warning(
                f"[{provider.name}] credential '{provider.credential_ref}' is not set; "
                "running without it"
            )
            return {}

        return {provider.credential_env: value}
