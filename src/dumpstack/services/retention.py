"""
Retention pruner.

Deletes artifacts whose age (now minus the timestamp in their filename)
is strictly greater than the provider's retention window. Only finalized
artifacts are considered, so in-progress writes are never touched.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from ..models import BackupArtifact, RetentionPolicy
from .artifact_store import ArtifactStore, format_bytes

logger = logging.getLogger(__name__)


@dataclass
class PruneResult:
    """Outcome of a pruning pass."""
    deleted: list[BackupArtifact] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.deleted)

    @property
    def bytes_freed(self) -> int:
        return sum(artifact.size_bytes for artifact in self.deleted)


class RetentionPruner:
    """Age-based artifact deletion."""

    def __init__(self, store: ArtifactStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def prune(
        self,
        policy: RetentionPolicy,
        provider: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PruneResult:
        """
        Delete expired artifacts.

        Args:
            policy: Retention windows
            provider: Only prune this provider (None prunes all)
            now: Reference instant, defaults to the clock

        Returns:
            PruneResult listing deleted artifacts and per-file errors
        """
        now = now or self.clock()
        result = PruneResult()

        scope = provider or "all providers"
        logger.info(f"Cleaning up expired backups for {scope}")

        for artifact in self.store.list(provider):
            age = artifact.age(now)
            if not policy.is_expired(artifact.provider, age):
                continue

            max_age = policy.max_age_for(artifact.provider)
            logger.info(
                f"Deleting expired backup: {artifact.name} "
                f"(age: {age}, retention: {max_age.days} days)"
            )
            try:
                artifact.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Error deleting {artifact.path}: {e}")
                result.errors.append(f"{artifact.path}: {e}")
                continue

            result.deleted.append(artifact)

        if result.deleted:
            logger.info(
                f"Deleted {result.count} old backup(s), "
                f"freed {format_bytes(result.bytes_freed)}"
            )
        else:
            logger.info("No old backups to delete")

        return result
