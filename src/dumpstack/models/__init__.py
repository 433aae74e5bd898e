"""Data models for Dumpstack."""

from .provider import ExecMode, Provider, ProviderType
from .target import TargetConfig, TargetsFile
from .artifact import BackupArtifact, VerificationStatus
from .retention import RetentionPolicy
from .backup import BackupResult, BackupState, RestoreResult, SweepResult

__all__ = [
    # Provider
    "ExecMode",
    "Provider",
    "ProviderType",
    # Targets
    "TargetConfig",
    "TargetsFile",
    # Artifacts
    "BackupArtifact",
    "VerificationStatus",
    "RetentionPolicy",
    # Runs
    "BackupResult",
    "BackupState",
    "RestoreResult",
    "SweepResult",
]
