"""
Preflight checks run before any resource-consuming or destructive step.
"""

import logging

from ..exceptions import TargetUnreachable
from ..models import Provider
from .artifact_store import ArtifactStore
from .command_runner import CommandRunner
from .credentials import EnvironmentSecretSource

logger = logging.getLogger(__name__)


class PreflightChecker:
    """Confirms the target is reachable and the backup directory exists."""

    def __init__(
        self,
        store: ArtifactStore,
        runner: CommandRunner,
        credentials: EnvironmentSecretSource,
    ):
        self.store = store
        self.runner = runner
        self.credentials = credentials

    def check(self, provider: Provider) -> None:
        """
        Run the provider's preflight probe.

        Providers without a probe only get the directory check.

        Raises:
            TargetUnreachable: If the probe exits non-zero
            ProviderUnavailable: If the probe's tool is missing
        """
        logger.info(f"[{provider.name}] Running pre-flight checks on {provider.target_label}")
        self.store.ensure_root()

        argv = provider.render_preflight()
        if argv is None:
            return

        output = self.runner.run(argv, env=self.credentials.environment_for(provider))
        if output.returncode != 0:
            raise TargetUnreachable(
                provider.name,
                f"{provider.target_label} is not reachable (exit {output.returncode})",
                output.stderr or None,
            )

        logger.info(f"[{provider.name}] Pre-flight checks passed")
