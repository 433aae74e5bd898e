"""
Command runner for external dump/restore tools.

Spawns provider commands as child processes without a shell. stdout is
exposed as a byte stream, stderr is spooled to a temporary file so it can
be attached to failures without a reader thread, and the exit status is
collected separately from whatever consumes stdout.
"""

import logging
import os
import signal
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence

from ..exceptions import ProviderUnavailable
from ..utils.tool_paths import get_tool_path

logger = logging.getLogger(__name__)

STDERR_TAIL_BYTES = 4096


@dataclass
class CommandOutput:
    """Result of a command run to completion."""
    returncode: int
    stdout: bytes
    stderr: str


class CommandHandle:
    """
    A running child process.

    The exit status is only available through wait(), which blocks until the
    process terminates. Call close() (or use as a context manager) to release
    the pipes and the spooled stderr file.
    """

    def __init__(self, argv: Sequence[str], process: subprocess.Popen, stderr_file: IO[bytes]):
        self.argv = list(argv)
        self._process = process
        self._stderr_file = stderr_file
        self._returncode: Optional[int] = None

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def stdout(self) -> Optional[IO[bytes]]:
        return self._process.stdout

    @property
    def stdin(self) -> Optional[IO[bytes]]:
        return self._process.stdin

    @property
    def program(self) -> str:
        return os.path.basename(self.argv[0])

    def wait(self, timeout: Optional[float] = None) -> int:
        """
        Wait for the process to exit.

        Raises:
            subprocess.TimeoutExpired: If the process outlives the timeout
        """
        if self._returncode is None:
            self._returncode = self._process.wait(timeout=timeout)
        return self._returncode

    def poll(self) -> Optional[int]:
        return self._process.poll()

    def request_stop(self) -> None:
        """Send SIGTERM without waiting. Safe to call from a signal handler."""
        try:
            self._process.send_signal(signal.SIGTERM)
        except ProcessLookupError:
            pass

    def terminate(self, grace_seconds: float = 5.0) -> None:
        """Send SIGTERM, escalating to SIGKILL after the grace period."""
        if self._process.poll() is not None:
            return

        logger.info(f"Terminating {self.program} (pid {self.pid})")
        try:
            self._process.send_signal(signal.SIGTERM)
            self._process.wait(timeout=grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning(f"{self.program} ignored SIGTERM, killing")
            self._process.kill()
            self._process.wait()
        except ProcessLookupError:
            pass

    def stderr_tail(self, max_bytes: int = STDERR_TAIL_BYTES) -> str:
        """Last max_bytes of the process's stderr."""
        try:
            self._stderr_file.flush()
            size = self._stderr_file.seek(0, os.SEEK_END)
            self._stderr_file.seek(max(0, size - max_bytes))
            data = self._stderr_file.read()
        except ValueError:
            # Already closed
            return ""
        return data.decode("utf-8", errors="replace").strip()

    def close(self) -> None:
        for stream in (self._process.stdin, self._process.stdout):
            if stream is not None and not stream.closed:
                try:
                    stream.close()
                except BrokenPipeError:
                    pass
        self._stderr_file.close()

    def __enter__(self) -> "CommandHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.terminate()
        self.close()


class CommandRunner:
    """
    Executes provider commands.

    The runner never interprets the payload; stdout is engine-opaque bytes.
    """

    def __init__(
        self,
        timeout_seconds: int = 3600,
        preflight_timeout_seconds: int = 30,
        tools_dir: Optional[Path] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.preflight_timeout_seconds = preflight_timeout_seconds
        self.tools_dir = tools_dir

    def _resolve(self, argv: Sequence[str]) -> list[str]:
        if not argv:
            raise ProviderUnavailable("", "empty command")

        executable = get_tool_path(argv[0], self.tools_dir)
        if executable is None:
            raise ProviderUnavailable(argv[0], "command not found")

        return [executable, *argv[1:]]

    def _environment(self, extra_env: Optional[Mapping[str, str]]) -> dict[str, str]:
        env = os.environ.copy()
        if extra_env:
            env.update(extra_env)
        return env

    def start(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        stdin: bool = False,
        capture_stdout: bool = True,
    ) -> CommandHandle:
        """
        Spawn a command.

        Args:
            argv: Command and arguments
            env: Extra environment variables (credentials)
            stdin: Whether to open a pipe to the process's stdin
            capture_stdout: Pipe stdout to the caller. When False, stdout is
                spooled together with stderr

        Returns:
            Handle to the running process

        Raises:
            ProviderUnavailable: If the command cannot be executed
        """
        cmd = self._resolve(argv)
        stderr_file = tempfile.TemporaryFile()

        logger.debug(f"Starting: {argv[0]} ({len(argv) - 1} args)")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE if stdin else subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture_stdout else stderr_file,
                stderr=stderr_file,
                env=self._environment(env),
            )
        except OSError as e:
            stderr_file.close()
            raise ProviderUnavailable(argv[0], str(e)) from e

        return CommandHandle(cmd, process, stderr_file)

    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> CommandOutput:
        """
        Run a short command to completion (preflight probes).

        A timeout is reported as exit status 124, like coreutils timeout.

        Raises:
            ProviderUnavailable: If the command cannot be executed
        """
        cmd = self._resolve(argv)
        timeout = timeout or self.preflight_timeout_seconds

        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=timeout,
                env=self._environment(env),
            )
        except subprocess.TimeoutExpired:
            logger.error(f"{argv[0]} timed out after {timeout} seconds")
            return CommandOutput(returncode=124, stdout=b"", stderr="timed out")
        except OSError as e:
            raise ProviderUnavailable(argv[0], str(e)) from e

        stderr_text = result.stderr.decode("utf-8", errors="replace").strip()
        if stderr_text:
            logger.debug(f"{argv[0]} stderr: {stderr_text[-STDERR_TAIL_BYTES:]}")

        return CommandOutput(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=stderr_text[-STDERR_TAIL_BYTES:],
        )
