"""Custom exceptions for Dumpstack."""

from typing import Optional

EXIT_FAILURE = 1
EXIT_ALREADY_RUNNING = 75


class DumpstackError(Exception):
    """Base exception for all Dumpstack errors."""

    category = "Error"
    exit_code = EXIT_FAILURE


class ConfigurationError(DumpstackError):
    """Unknown provider, malformed setting or invalid target definition."""

    category = "ConfigurationError"


class TargetUnreachable(DumpstackError):
    """Preflight could not reach the target container or host."""

    category = "TargetUnreachable"

    def __init__(self, provider: str, message: str, details: Optional[str] = None):
        self.provider = provider
        self.details = details
        super().__init__(f"[{provider}] {message}")


class ProviderUnavailable(DumpstackError):
    """The external tool a provider relies on could not be executed."""

    category = "ProviderUnavailable"

    def __init__(self, command: str, message: str):
        self.command = command
        super().__init__(f"'{command}': {message}")


class DumpFailed(DumpstackError):
    """The dump subprocess failed or produced no output."""

    category = "DumpFailed"

    def __init__(self, provider: str, message: str, details: Optional[str] = None):
        self.provider = provider
        self.details = details
        super().__init__(f"Backup failed for '{provider}': {message}")


class CompressionFailed(DumpstackError):
    """The compression stage failed while writing the artifact."""

    category = "CompressionFailed"

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.details = None
        super().__init__(f"Compression failed for '{provider}': {message}")


class BackupCancelled(DumpstackError):
    """The run was cancelled by a signal before it completed."""

    category = "Cancelled"

    def __init__(self, message: str = "Run cancelled"):
        self.details = None
        super().__init__(message)


class ArtifactNotFound(DumpstackError):
    """The artifact path does not exist."""

    category = "ArtifactNotFound"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Artifact '{path}' not found")


class ArtifactExists(DumpstackError):
    """An artifact with the allocated name is already on disk."""

    category = "ArtifactExists"

    def __init__(self, path: str):
        self.path = path
        self.details = None
        super().__init__(f"Artifact '{path}' already exists")


class ArtifactCorrupt(DumpstackError):
    """The artifact failed the structural integrity check."""

    category = "ArtifactCorrupt"

    def __init__(self, path: str, message: str):
        self.path = path
        self.details = message
        super().__init__(f"Artifact '{path}' is corrupt: {message}")


class StorageError(DumpstackError):
    """The backup directory or a file in it could not be read or written."""

    category = "StorageError"

    def __init__(self, message: str, details: Optional[str] = None):
        self.details = details
        super().__init__(message)


class AlreadyRunning(DumpstackError):
    """Another invocation holds the provider lock."""

    category = "AlreadyRunning"
    exit_code = EXIT_ALREADY_RUNNING

    def __init__(self, provider: str, lock_path: str):
        self.provider = provider
        self.lock_path = lock_path
        self.details = None
        super().__init__(
            f"Another run for '{provider}' is in progress (lock: {lock_path})"
        )


class RestoreDeclined(DumpstackError):
    """The operator did not confirm a destructive operation."""

    category = "Declined"

    def __init__(self, message: str = "Operation cancelled by operator"):
        super().__init__(message)


class RestoreCommandFailed(DumpstackError):
    """
    The restore subprocess failed after it started receiving data.

    The target may be partially restored and needs manual verification.
    """

    category = "RestoreCommandFailed"

    def __init__(self, provider: str, message: str, details: Optional[str] = None):
        self.provider = provider
        self.details = details
        super().__init__(f"Restore failed for '{provider}': {message}")


__all__ = [
    "EXIT_FAILURE",
    "EXIT_ALREADY_RUNNING",
    "DumpstackError",
    "ConfigurationError",
    "TargetUnreachable",
    "ProviderUnavailable",
    "DumpFailed",
    "CompressionFailed",
    "BackupCancelled",
    "ArtifactNotFound",
    "ArtifactExists",
    "ArtifactCorrupt",
    "StorageError",
    "AlreadyRunning",
    "RestoreDeclined",
    "RestoreCommandFailed",
]
