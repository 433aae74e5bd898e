"""
Cooperative cancellation for coordinator runs.

Signal handlers call cancel(); the coordinator checks the token between
stages and the pipeline checks it between chunks. Any process registered
with watch() is terminated as soon as cancellation is requested so a
blocked read returns promptly.
"""

import logging
import signal
from contextlib import contextmanager
from typing import Iterator, Optional

from ..exceptions import BackupCancelled
from .command_runner import CommandHandle

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag shared between a signal handler and a running coordinator."""

    def __init__(self):
        self._cancelled = False
        self._active: Optional[CommandHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._active is not None:
            self._active.request_stop()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise BackupCancelled()

    @contextmanager
    def watch(self, handle: CommandHandle) -> Iterator[CommandHandle]:
        """Terminate handle if cancellation is requested while it runs."""
        self._active = handle
        try:
            yield handle
        finally:
            self._active = None

    @contextmanager
    def signals_cancel(self) -> Iterator[None]:
        """Cancel on SIGTERM and SIGINT while inside the block."""

        def handler(signum, frame):
            logger.warning(f"Received {signal.Signals(signum).name}, cancelling")
            self.cancel()

        previous = {
            signum: signal.signal(signum, handler)
            for signum in (signal.SIGTERM, signal.SIGINT)
        }
        try:
            yield
        finally:
            for signum, old_handler in previous.items():
                signal.signal(signum, old_handler)
