"""
Backup and restore run models.

Defines the per-provider state machine record produced by the backup
coordinator and the aggregated result of a sweep.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..exceptions import EXIT_ALREADY_RUNNING, EXIT_FAILURE, AlreadyRunning, DumpstackError
from .artifact import VerificationStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupState(str, Enum):
    """States of a single provider's backup run."""

    IDLE = "idle"
    PREFLIGHT = "preflight"
    DUMPING = "dumping"
    COMPRESSING = "compressing"
    VERIFYING = "verifying"
    PRUNING = "pruning"
    DONE = "done"
    ABORTED = "aborted"


class BackupResult(BaseModel):
    """Result of one provider's backup run."""

    provider: str = Field(..., description="Provider name")
    state: BackupState = Field(default=BackupState.IDLE)

    # Artifact details
    artifact_path: Optional[str] = None
    size_bytes: Optional[int] = None
    verification: VerificationStatus = Field(default=VerificationStatus.UNKNOWN)
    verification_message: Optional[str] = None

    # Error information
    error_category: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[str] = None
    aborted_in: Optional[BackupState] = None

    # Pruning
    pruned_count: int = Field(default=0)
    prune_error: Optional[str] = None

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def mark_started(self) -> None:
        """Mark the run as started."""
        self.started_at = utcnow()

    def advance(self, state: BackupState) -> None:
        """Move the run to the next stage."""
        self.state = state

    def record_error(self, error: DumpstackError) -> None:
        """Attach an error without changing the state."""
        self.error_category = error.category
        self.error_message = str(error)
        self.error_details = getattr(error, "details", None)

    def mark_aborted(self, error: DumpstackError) -> None:
        """Mark the run as aborted in its current stage."""
        self.aborted_in = self.state
        self.state = BackupState.ABORTED
        self.record_error(error)
        self._finish()

    def mark_done(self) -> None:
        """Mark the run as completed."""
        self.state = BackupState.DONE
        self._finish()

    def _finish(self) -> None:
        self.completed_at = utcnow()
        if self.started_at:
            self.duration_seconds = (
                self.completed_at - self.started_at
            ).total_seconds()

    @property
    def succeeded(self) -> bool:
        return (
            self.state == BackupState.DONE
            and self.verification != VerificationStatus.FAIL
        )

    @property
    def skipped_busy(self) -> bool:
        return self.error_category == AlreadyRunning.category


class SweepResult(BaseModel):
    """Aggregated results of a multi-provider run."""

    results: list[BackupResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[BackupResult]:
        return [result for result in self.results if result.succeeded]

    @property
    def failed(self) -> list[BackupResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def exit_code(self) -> int:
        """
        Process exit code for the sweep.

        0 if every provider succeeded, 75 if the only failures were
        providers skipped because another run held their lock, 1 otherwise.
        """
        failed = self.failed
        if not failed:
            return 0
        if all(result.skipped_busy for result in failed):
            return EXIT_ALREADY_RUNNING
        return EXIT_FAILURE


class RestoreResult(BaseModel):
    """Result of a successful restore."""

    provider: str
    artifact_path: str
    bytes_streamed: int = Field(default=0)
    started_at: datetime = Field(default_factory=utcnow)
    duration_seconds: Optional[float] = None
    notice: Optional[str] = None
