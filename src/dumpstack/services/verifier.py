"""
Integrity verifier for finalized artifacts.

Two checks:
- structural: a gzip artifact must decompress to its end-of-stream marker
  (detects truncation and corruption)
- size heuristic: artifacts below the configured threshold are flagged
  with a warning but accepted; they are never deleted for being small
"""

import gzip
import logging
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import ArtifactNotFound
from ..models import VerificationStatus
from .compression import CHUNK_SIZE, is_gzip

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class VerificationResult:
    """Result of verifying an artifact."""
    path: Path
    status: VerificationStatus
    size_bytes: int
    message: str

    @property
    def passed(self) -> bool:
        return self.status in (VerificationStatus.PASS, VerificationStatus.WARNING)


class IntegrityVerifier:
    """
    Validates completed artifacts.

    The byte threshold is a heuristic with no deeper meaning; it is
    configurable (BACKUP_MIN_SIZE_BYTES).
    """

    def __init__(self, min_size_bytes: int = 1024):
        self.min_size_bytes = min_size_bytes

    def check_structure(self, path: Path) -> Optional[str]:
        """
        Check the compressed container of an artifact.

        Returns:
            None if the artifact is structurally valid, otherwise the reason
        """
        path = Path(path)
        if not is_gzip(path):
            # Raw artifacts carry no container to check
            return None

        with open(path, "rb") as f:
            magic = f.read(2)
        if magic != GZIP_MAGIC:
            return "not a gzip archive" if magic else "empty archive"

        try:
            with gzip.open(path, "rb") as f:
                while f.read(CHUNK_SIZE):
                    pass
        except EOFError:
            return "archive is truncated"
        except (OSError, zlib.error) as e:
            return f"archive is corrupt ({e})"

        return None

    def verify(self, path: Path) -> VerificationResult:
        """
        Verify an artifact.

        Args:
            path: Finalized artifact path

        Returns:
            VerificationResult with pass, pass-with-warning or fail

        Raises:
            ArtifactNotFound: If the file does not exist
        """
        path = Path(path)
        if not path.is_file():
            raise ArtifactNotFound(str(path))

        logger.info(f"Verifying backup: {path}")
        size = path.stat().st_size

        error = self.check_structure(path)
        if error:
            logger.error(f"Backup file is corrupted: {path} ({error})")
            return VerificationResult(path, VerificationStatus.FAIL, size, error)

        if size < self.min_size_bytes:
            message = (
                f"suspiciously small: {size} bytes "
                f"(threshold {self.min_size_bytes} bytes)"
            )
            logger.warning(f"Backup file is {message}: {path}")
            return VerificationResult(path, VerificationStatus.WARNING, size, message)

        logger.info("Backup verification passed")
        return VerificationResult(path, VerificationStatus.PASS, size, "ok")
