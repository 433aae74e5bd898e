"""
Service wiring.

Builds every component from one Settings object so nothing reads
configuration on its own.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..config import Settings
from ..engines import ProviderRegistry
from ..models import RetentionPolicy
from .artifact_store import ArtifactStore
from .backup_coordinator import BackupCoordinator
from .cancellation import CancellationToken
from .command_runner import CommandRunner
from .compression import CompressionPipeline
from .confirmation import Confirmer, PromptConfirmer
from .credentials import EnvironmentSecretSource
from .locks import ProviderLocks
from .preflight import PreflightChecker
from .restore_coordinator import RestoreCoordinator
from .retention import RetentionPruner
from .verifier import IntegrityVerifier


@dataclass
class Services:
    """All components for one invocation."""
    settings: Settings
    registry: ProviderRegistry
    store: ArtifactStore
    runner: CommandRunner
    pipeline: CompressionPipeline
    verifier: IntegrityVerifier
    pruner: RetentionPruner
    retention: RetentionPolicy
    credentials: EnvironmentSecretSource
    locks: ProviderLocks
    preflight: PreflightChecker
    cancellation: CancellationToken
    backup: BackupCoordinator
    restore: RestoreCoordinator


def build_services(
    settings: Settings,
    registry: Optional[ProviderRegistry] = None,
    confirmer: Optional[Confirmer] = None,
    cancellation: Optional[CancellationToken] = None,
    credentials: Optional[EnvironmentSecretSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Services:
    """
    Wire the components for an invocation.

    Args:
        settings: Loaded settings
        registry: Provider registry (built from settings if omitted)
        confirmer: Confirmation capability for restores (terminal prompt if omitted)
        cancellation: Shared cancellation token
        credentials: Secret source (environment + .env if omitted)
        clock: Time source for artifact timestamps and retention

    Raises:
        ConfigurationError: If the provider configuration is invalid
    """
    registry = registry or ProviderRegistry.from_settings(settings)
    cancellation = cancellation or CancellationToken()
    credentials = credentials or EnvironmentSecretSource()

    store = ArtifactStore(settings.backup_dir)
    runner = CommandRunner(
        timeout_seconds=settings.backup_command_timeout_seconds,
        preflight_timeout_seconds=settings.backup_preflight_timeout_seconds,
        tools_dir=settings.backup_tools_dir,
    )
    pipeline = CompressionPipeline(
        enabled=settings.backup_compression,
        level=settings.backup_compression_level,
        timeout_seconds=settings.backup_command_timeout_seconds,
    )
    verifier = IntegrityVerifier(min_size_bytes=settings.backup_min_size_bytes)
    pruner = RetentionPruner(store, clock=clock)
    retention = registry.retention_policy(settings)
    locks = ProviderLocks(settings.backup_dir)
    preflight = PreflightChecker(store, runner, credentials)

    backup = BackupCoordinator(
        registry=registry,
        store=store,
        runner=runner,
        pipeline=pipeline,
        verifier=verifier,
        pruner=pruner,
        retention=retention,
        credentials=credentials,
        locks=locks,
        preflight=preflight,
        cancellation=cancellation,
        clock=clock,
    )
    restore = RestoreCoordinator(
        registry=registry,
        store=store,
        runner=runner,
        pipeline=pipeline,
        verifier=verifier,
        credentials=credentials,
        locks=locks,
        confirmer=confirmer or PromptConfirmer(),
        preflight=preflight,
    )

    return Services(
        settings=settings,
        registry=registry,
        store=store,
        runner=runner,
        pipeline=pipeline,
        verifier=verifier,
        pruner=pruner,
        retention=retention,
        credentials=credentials,
        locks=locks,
        preflight=preflight,
        cancellation=cancellation,
        backup=backup,
        restore=restore,
    )
