"""
Advisory per-provider locks.

A lock file ``.{provider}.lock`` under the backup root is held with a
non-blocking flock for the duration of a backup or restore. The kernel
releases it if the process dies, so stale lock files are harmless.
"""

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..exceptions import AlreadyRunning, StorageError

logger = logging.getLogger(__name__)


class ProviderLocks:
    """Hands out exclusive per-provider locks."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def lock_path(self, provider: str) -> Path:
        return self.root / f".{provider}.lock"

    @contextmanager
    def acquire(self, provider: str) -> Iterator[Path]:
        """
        Hold the provider's lock.

        Raises:
            AlreadyRunning: If another process holds it
            StorageError: If the lock file cannot be opened
        """
        path = self.lock_path(provider)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise StorageError(f"Cannot open lock file {path}: {e}") from e
        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                raise AlreadyRunning(provider, str(path)) from None

            os.ftruncate(fd, 0)
            os.write(fd, f"{os.getpid()}\n".encode())
            logger.debug(f"Acquired lock {path}")
            try:
                yield path
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
