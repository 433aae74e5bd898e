"""
Backup artifact models.

An artifact is a single backup file produced by one coordinator run.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class VerificationStatus(str, Enum):
    """Outcome of the integrity check."""

    UNKNOWN = "unknown"
    PASS = "pass"
    WARNING = "pass-with-warning"
    FAIL = "fail"


class BackupArtifact(BaseModel):
    """A finalized backup file on disk."""

    provider: str = Field(..., description="Provider the artifact belongs to")
    timestamp: datetime = Field(..., description="Creation instant (UTC)")
    path: Path
    size_bytes: int = Field(default=0)
    compressed: bool = Field(default=True)
    verified: VerificationStatus = Field(default=VerificationStatus.UNKNOWN)

    @property
    def name(self) -> str:
        return self.path.name

    def age(self, now: datetime):
        """Age of the artifact relative to now."""
        return now - self.timestamp
