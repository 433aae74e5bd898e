"""Services for Dumpstack."""

from .artifact_store import ArtifactStore, format_bytes, parse_artifact_name
from .backup_coordinator import BackupCoordinator
from .cancellation import CancellationToken
from .command_runner import CommandHandle, CommandOutput, CommandRunner
from .compression import CompressionPipeline, PipelineStatus
from .confirmation import Confirmer, PromptConfirmer
from .credentials import EnvironmentSecretSource
from .factory import Services, build_services
from .locks import ProviderLocks
from .preflight import PreflightChecker
from .restore_coordinator import RestoreCoordinator
from .retention import PruneResult, RetentionPruner
from .verifier import IntegrityVerifier, VerificationResult

__all__ = [
    "ArtifactStore",
    "format_bytes",
    "parse_artifact_name",
    "BackupCoordinator",
    "CancellationToken",
    "CommandHandle",
    "CommandOutput",
    "CommandRunner",
    "CompressionPipeline",
    "PipelineStatus",
    "Confirmer",
    "PromptConfirmer",
    "EnvironmentSecretSource",
    "Services",
    "build_services",
    "ProviderLocks",
    "PreflightChecker",
    "RestoreCoordinator",
    "PruneResult",
    "RetentionPruner",
    "IntegrityVerifier",
    "VerificationResult",
]
