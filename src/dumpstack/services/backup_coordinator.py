"""
Backup coordinator.

Runs one provider's backup as a strict sequence of stages:

    Idle -> Preflight -> Dumping -> Compressing -> Verifying -> Pruning -> Done

Preflight, Dumping and Compressing can end in Aborted. A failed dump or
compression discards the in-progress file, so no partial artifact is ever
listed. A structurally corrupt artifact is kept on disk but flagged, and
pruning runs regardless of the verification outcome. A sweep runs every
registered provider in order and never stops at the first failure.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..engines import ProviderRegistry
from ..exceptions import (
    ArtifactCorrupt,
    CompressionFailed,
    DumpFailed,
    DumpstackError,
    StorageError,
)
from ..models import (
    BackupArtifact,
    BackupResult,
    BackupState,
    Provider,
    RetentionPolicy,
    SweepResult,
    VerificationStatus,
)
from .artifact_store import ArtifactStore, format_bytes
from .cancellation import CancellationToken
from .command_runner import CommandRunner
from .compression import CompressionPipeline
from .credentials import EnvironmentSecretSource
from .locks import ProviderLocks
from .preflight import PreflightChecker
from .retention import RetentionPruner
from .verifier import IntegrityVerifier

logger = logging.getLogger(__name__)


class BackupCoordinator:
    """Orchestrates preflight, snapshot, verification and pruning."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: ArtifactStore,
        runner: CommandRunner,
        pipeline: CompressionPipeline,
        verifier: IntegrityVerifier,
        pruner: RetentionPruner,
        retention: RetentionPolicy,
        credentials: EnvironmentSecretSource,
        locks: ProviderLocks,
        preflight: PreflightChecker,
        cancellation: Optional[CancellationToken] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.registry = registry
        self.store = store
        self.runner = runner
        self.pipeline = pipeline
        self.verifier = verifier
        self.pruner = pruner
        self.retention = retention
        self.credentials = credentials
        self.locks = locks
        self.preflight = preflight
        self.cancellation = cancellation or CancellationToken()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def backup(self, name: str) -> BackupResult:
        """
        Back up a single provider.

        Args:
            name: Registered provider name

        Returns:
            The run's BackupResult (state DONE or ABORTED)

        Raises:
            ConfigurationError: If the provider is not registered
        """
        provider = self.registry.resolve(name)
        return self._run(provider)

    def backup_all(self) -> SweepResult:
        """Back up every registered provider, strictly one after another."""
        sweep = SweepResult()
        names = self.registry.names()
        logger.info(f"Starting sweep over {len(names)} provider(s)")

        for name in names:
            sweep.results.append(self._run(self.registry.resolve(name)))

        logger.info(
            f"Sweep finished: {len(sweep.succeeded)} succeeded, "
            f"{len(sweep.failed)} failed"
        )
        return sweep

    def _run(self, provider: Provider) -> BackupResult:
        result = BackupResult(provider=provider.name)
        result.mark_started()

        try:
            with self.locks.acquire(provider.name):
                self._run_stages(provider, result)
        except DumpstackError as e:
            logger.error(f"[{provider.name}] {e.category}: {e}")
            result.mark_aborted(e)
        except OSError as e:
            logger.error(f"[{provider.name}] I/O error: {e}", exc_info=True)
            result.mark_aborted(StorageError(f"I/O error during backup: {e}"))

        return result

    def _run_stages(self, provider: Provider, result: BackupResult) -> None:
        self.cancellation.raise_if_cancelled()
        result.advance(BackupState.PREFLIGHT)
        self.preflight.check(provider)

        self.cancellation.raise_if_cancelled()
        artifact = self._snapshot(provider, result)
        result.artifact_path = str(artifact.path)
        result.size_bytes = artifact.size_bytes

        result.advance(BackupState.VERIFYING)
        verification = self.verifier.verify(artifact.path)
        result.verification = verification.status
        result.verification_message = verification.message
        if verification.status == VerificationStatus.FAIL:
            # Kept on disk for the operator to inspect
            result.record_error(ArtifactCorrupt(str(artifact.path), verification.message))

        result.advance(BackupState.PRUNING)
        self._prune(provider, result)

        result.mark_done()
        logger.info(
            f"[{provider.name}] Backup created: {artifact.path} "
            f"({format_bytes(artifact.size_bytes)})"
        )

    def _snapshot(self, provider: Provider, result: BackupResult) -> BackupArtifact:
        result.advance(BackupState.DUMPING)
        argv = provider.render_dump()
        env = self.credentials.environment_for(provider)

        timestamp = self.clock()
        extension = self.pipeline.extension(provider.file_extension)
        partial = self.store.allocate(provider.name, timestamp, extension)

        logger.info(f"[{provider.name}] Backing up to {partial.name}")

        try:
            with self.runner.start(argv, env=env) as handle, self.cancellation.watch(handle):
                result.advance(BackupState.COMPRESSING)
                status = self.pipeline.compress(handle, partial, self.cancellation)

            if not status.compressor_ok:
                raise CompressionFailed(provider.name, status.compressor_error or "unknown error")
            if not status.producer_ok or status.bytes_in == 0:
                # Attributed to the dump, not to the compressor
                result.advance(BackupState.DUMPING)
            if not status.producer_ok:
                raise DumpFailed(
                    provider.name,
                    f"{handle.program} exited with status {status.producer_status}",
                    status.producer_stderr or None,
                )
            if status.bytes_in == 0:
                raise DumpFailed(
                    provider.name,
                    f"{handle.program} produced no output",
                    status.producer_stderr or None,
                )

            return self.store.finalize(partial)
        except BaseException:
            self.store.discard(partial)
            raise

    def _prune(self, provider: Provider, result: BackupResult) -> None:
        try:
            pruned = self.pruner.prune(self.retention, provider=provider.name)
        except (OSError, DumpstackError) as e:
            logger.error(f"[{provider.name}] Cleanup failed: {e}")
            result.prune_error = str(e)
            return

        result.pruned_count = pruned.count
        if pruned.errors:
            result.prune_error = "; ".join(pruned.errors)
