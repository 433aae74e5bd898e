"""
Artifact store for on-disk backup files.

Artifacts live flat under the backup root as
``{provider}_{YYYYMMDD_HHMMSS}.{ext}`` (UTC timestamps). Writes go to a
hidden ``.partial`` file that list() never reports; finalize() renames it
into place, which is the commit point.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..exceptions import ArtifactExists, ArtifactNotFound
from ..models import BackupArtifact

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
PARTIAL_SUFFIX = ".partial"

_ARTIFACT_NAME = re.compile(
    r"^(?P<provider>[A-Za-z0-9][A-Za-z0-9_.-]*)_(?P<timestamp>\d{8}_\d{6})\.(?P<ext>[A-Za-z0-9]+(?:\.[A-Za-z0-9]+)*)$"
)


def format_bytes(size_bytes: int) -> str:
    """Format bytes into human-readable string."""
    if size_bytes == 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{size:.1f} {units[i]}" if i > 0 else f"{int(size)} {units[i]}"


def parse_artifact_name(name: str) -> Optional[tuple[str, datetime, str]]:
    """
    Parse an artifact filename.

    Returns:
        Tuple of (provider, timestamp, extension), or None if the name does
        not follow the naming convention.
    """
    match = _ARTIFACT_NAME.match(name)
    if not match:
        return None

    try:
        timestamp = datetime.strptime(match.group("timestamp"), TIMESTAMP_FORMAT)
    except ValueError:
        return None

    return (
        match.group("provider"),
        timestamp.replace(tzinfo=timezone.utc),
        match.group("ext"),
    )


class ArtifactStore:
    """
    Sole writer of the backup directory.

    The directory listing is the source of truth; there is no index.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_root(self) -> Path:
        """Create the backup directory if it is missing."""
        if not self.root.is_dir():
            logger.info(f"Creating backup directory: {self.root}")
            self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def artifact_path(self, provider: str, timestamp: datetime, extension: str) -> Path:
        """Final path for an artifact."""
        stamp = timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
        return self.root / f"{provider}_{stamp}.{extension}"

    def allocate(self, provider: str, timestamp: datetime, extension: str) -> Path:
        """
        Reserve the write location for a new artifact.

        Args:
            provider: Provider name
            timestamp: Creation instant
            extension: Artifact extension (e.g. "sql.gz")

        Returns:
            Path of the in-progress file to write

        Raises:
            ArtifactExists: If the final or in-progress name is taken
        """
        self.ensure_root()
        final = self.artifact_path(provider, timestamp, extension)
        partial = self._partial_path(final)

        if final.exists():
            raise ArtifactExists(str(final))

        try:
            # Exclusive create reserves the name
            with open(partial, "xb"):
                pass
        except FileExistsError:
            raise ArtifactExists(str(partial)) from None

        logger.debug(f"Allocated {partial}")
        return partial

    def finalize(self, partial: Path) -> BackupArtifact:
        """
        Commit an in-progress artifact under its final name.

        Raises:
            ArtifactNotFound: If the in-progress file is missing
        """
        partial = Path(partial)
        if not partial.is_file():
            raise ArtifactNotFound(str(partial))

        final = self._final_path(partial)
        os.replace(partial, final)

        artifact = self.get(final)
        logger.debug(f"Finalized {final}")
        return artifact

    def discard(self, path: Path) -> bool:
        """
        Remove a partial or failed artifact.

        Idempotent: a missing path is not an error.

        Returns:
            True if a file was removed
        """
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False

        logger.info(f"Discarded {path}")
        return True

    def delete(self, path: Path) -> BackupArtifact:
        """
        Delete a finalized artifact.

        Raises:
            ArtifactNotFound: If the artifact does not exist
        """
        artifact = self.get(path)
        artifact.path.unlink()
        logger.info(f"Deleted {artifact.path}")
        return artifact

    def get(self, path: Path) -> BackupArtifact:
        """
        Describe a finalized artifact.

        Raises:
            ArtifactNotFound: If the file is missing or not an artifact
        """
        path = Path(path)
        parsed = parse_artifact_name(path.name)
        if parsed is None or not path.is_file():
            raise ArtifactNotFound(str(path))

        provider, timestamp, extension = parsed
        return BackupArtifact(
            provider=provider,
            timestamp=timestamp,
            path=path,
            size_bytes=path.stat().st_size,
            compressed=extension.endswith("gz"),
        )

    def list(self, provider: Optional[str] = None) -> list[BackupArtifact]:
        """
        List finalized artifacts, newest first.

        Args:
            provider: Only list artifacts of this provider

        Returns:
            Artifacts sorted by timestamp, newest first
        """
        if not self.root.is_dir():
            return []

        artifacts = []
        for entry in self.root.iterdir():
            parsed = parse_artifact_name(entry.name)
            if parsed is None or not entry.is_file():
                continue
            if provider is not None and parsed[0] != provider:
                continue
            try:
                artifacts.append(self.get(entry))
            except ArtifactNotFound:
                # Removed between listing and stat
                continue

        artifacts.sort(key=lambda a: (a.timestamp, a.name), reverse=True)
        return artifacts

    def size_of(self, path: Path) -> int:
        """
        Size of a file in bytes.

        Raises:
            ArtifactNotFound: If the file does not exist
        """
        try:
            return Path(path).stat().st_size
        except FileNotFoundError:
            raise ArtifactNotFound(str(path)) from None

    def total_size(self, provider: Optional[str] = None) -> int:
        return sum(artifact.size_bytes for artifact in self.list(provider))

    @staticmethod
    def _partial_path(final: Path) -> Path:
        return final.with_name(f".{final.name}{PARTIAL_SUFFIX}")

    @staticmethod
    def _final_path(partial: Path) -> Path:
        name = partial.name
        if not (name.startswith(".") and name.endswith(PARTIAL_SUFFIX)):
            raise ValueError(f"Not an in-progress artifact: {partial}")
        return partial.with_name(name[1:-len(PARTIAL_SUFFIX)])
