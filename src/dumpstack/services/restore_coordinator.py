"""
Restore coordinator.

Restoring overwrites live data, so the sequence is gated:

1. the artifact must exist and pass the structural integrity check
2. the target must pass preflight
3. the operator must answer "yes"
4. the artifact is decompressed and streamed into the restore command

Failures before step 4 leave the target untouched. Once the restore
command has started, any failure is a RestoreCommandFailed: the target
may be partially restored.
"""

import logging
import subprocess
import time
import zlib
from pathlib import Path
from typing import Optional

from ..engines import ProviderRegistry
from ..exceptions import (
    ArtifactCorrupt,
    ArtifactNotFound,
    ConfigurationError,
    RestoreCommandFailed,
    RestoreDeclined,
)
from ..models import Provider, RestoreResult
from .artifact_store import ArtifactStore, format_bytes, parse_artifact_name
from .command_runner import CommandRunner
from .compression import CompressionPipeline
from .confirmation import Confirmer
from .credentials import EnvironmentSecretSource
from .locks import ProviderLocks
from .preflight import PreflightChecker
from .verifier import IntegrityVerifier

logger = logging.getLogger(__name__)


class RestoreCoordinator:
    """Guarded restoration of an artifact into its provider's target."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: ArtifactStore,
        runner: CommandRunner,
        pipeline: CompressionPipeline,
        verifier: IntegrityVerifier,
        credentials: EnvironmentSecretSource,
        locks: ProviderLocks,
        confirmer: Confirmer,
        preflight: PreflightChecker,
    ):
        self.registry = registry
        self.store = store
        self.runner = runner
        self.pipeline = pipeline
        self.verifier = verifier
        self.credentials = credentials
        self.locks = locks
        self.confirmer = confirmer
        self.preflight = preflight

    def resolve_provider(self, path: Path, provider_name: Optional[str] = None) -> Provider:
        """
        Find the provider an artifact belongs to.

        Raises:
            ConfigurationError: If no provider can be determined
        """
        if provider_name:
            return self.registry.resolve(provider_name)

        parsed = parse_artifact_name(path.name)
        if parsed is None:
            raise ConfigurationError(
                f"Cannot infer the provider from '{path.name}'; pass --provider"
            )
        return self.registry.resolve(parsed[0])

    def restore(self, artifact_path: Path, provider_name: Optional[str] = None) -> RestoreResult:
        """
        Restore an artifact.

        Args:
            artifact_path: Path to the artifact
            provider_name: Provider to restore into (defaults to the one in
                the artifact's name)

        Returns:
            RestoreResult on success

        Raises:
            ArtifactNotFound: If the artifact does not exist
            ArtifactCorrupt: If the artifact fails the integrity check
            TargetUnreachable: If the target fails preflight
            RestoreDeclined: If the operator did not confirm
            RestoreCommandFailed: If the restore command failed
            AlreadyRunning: If another run holds the provider's lock
        """
        path = Path(artifact_path)
        if not path.is_file():
            raise ArtifactNotFound(str(path))

        provider = self.resolve_provider(path, provider_name)

        with self.locks.acquire(provider.name):
            error = self.verifier.check_structure(path)
            if error:
                raise ArtifactCorrupt(str(path), error)

            self.preflight.check(provider)

            logger.warning(f"[{provider.name}] Restore will OVERWRITE existing data")
            prompt = (
                f"This will OVERWRITE data on '{provider.name}' "
                f"({provider.target_label}) with {path.name}. Continue?"
            )
            if not self.confirmer.confirm(prompt):
                logger.info("Restore cancelled")
                raise RestoreDeclined("Restore cancelled by operator")

            return self._stream(provider, path)

    def _stream(self, provider: Provider, path: Path) -> RestoreResult:
        argv = provider.render_restore()
        env = self.credentials.environment_for(provider)
        result = RestoreResult(provider=provider.name, artifact_path=str(path))
        started = time.monotonic()

        logger.info(f"[{provider.name}] Restoring from: {path}")

        with self.runner.start(argv, env=env, stdin=True, capture_stdout=False) as handle:
            decompress_error = None
            try:
                for chunk in self.pipeline.decompress(path):
                    handle.stdin.write(chunk)
                    result.bytes_streamed += len(chunk)
            except BrokenPipeError:
                # Restore command exited early; its status tells why
                pass
            except (EOFError, zlib.error, OSError) as e:
                decompress_error = str(e)
                handle.terminate()

            try:
                handle.stdin.close()
            except BrokenPipeError:
                pass

            try:
                status = handle.wait(timeout=self.runner.timeout_seconds)
            except subprocess.TimeoutExpired:
                handle.terminate()
                raise RestoreCommandFailed(
                    provider.name,
                    f"{handle.program} timed out after {self.runner.timeout_seconds} seconds",
                    handle.stderr_tail() or None,
                )

            if decompress_error:
                raise RestoreCommandFailed(
                    provider.name,
                    f"decompression failed mid-stream: {decompress_error}",
                    handle.stderr_tail() or None,
                )
            if status != 0:
                raise RestoreCommandFailed(
                    provider.name,
                    f"{handle.program} exited with status {status}",
                    handle.stderr_tail() or None,
                )

            stderr = handle.stderr_tail()
            if stderr:
                logger.debug(f"{handle.program} stderr: {stderr}")

        result.duration_seconds = round(time.monotonic() - started, 2)
        result.notice = provider.restore_notice
        logger.info(
            f"[{provider.name}] Restore completed successfully "
            f"({format_bytes(result.bytes_streamed)} streamed)"
        )
        return result
