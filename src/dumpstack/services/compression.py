"""
Streaming compression pipeline.

Pumps a producer's stdout through gzip into the artifact file while
keeping two independent statuses: the producer's exit status and the
compressor's. A dump that fails after writing nothing still yields a
perfectly valid (empty) gzip stream, so success must never be inferred
from the compressor alone.
"""

import gzip
import logging
import subprocess
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import BackupCancelled
from .cancellation import CancellationToken
from .command_runner import CommandHandle

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class PipelineStatus:
    """Outcome of both pipeline stages."""
    producer_status: Optional[int]
    compressor_status: int
    bytes_in: int
    bytes_out: int
    compressor_error: Optional[str] = None
    producer_stderr: str = ""

    @property
    def producer_ok(self) -> bool:
        return self.producer_status == 0

    @property
    def compressor_ok(self) -> bool:
        return self.compressor_status == 0

    @property
    def ok(self) -> bool:
        return self.producer_ok and self.compressor_ok


class CompressionPipeline:
    """
    gzip-compresses a byte stream into a file.

    With compression disabled the stream is written as-is (passthrough),
    which keeps artifacts inspectable in tests.
    """

    def __init__(self, enabled: bool = True, level: int = 6, timeout_seconds: Optional[float] = None):
        self.enabled = enabled
        self.level = level
        self.timeout_seconds = timeout_seconds

    def extension(self, base_extension: str) -> str:
        """Artifact extension for an engine's raw format."""
        return f"{base_extension}.gz" if self.enabled else base_extension

    def compress(
        self,
        producer: CommandHandle,
        destination: Path,
        cancellation: Optional[CancellationToken] = None,
    ) -> PipelineStatus:
        """
        Stream the producer's stdout into destination.

        Args:
            producer: Running dump process
            destination: File to write (already allocated)
            cancellation: Checked between chunks

        Returns:
            Status of both stages

        Raises:
            BackupCancelled: If cancellation was requested mid-stream
        """
        bytes_in = 0
        compressor_error = None

        try:
            with open(destination, "wb") as raw:
                sink = gzip.GzipFile(fileobj=raw, mode="wb", compresslevel=self.level) if self.enabled else raw
                try:
                    for chunk in iter(lambda: producer.stdout.read(CHUNK_SIZE), b""):
                        if cancellation is not None and cancellation.cancelled:
                            break
                        sink.write(chunk)
                        bytes_in += len(chunk)
                finally:
                    if sink is not raw:
                        # Writes the gzip footer
                        sink.close()
        except (OSError, zlib.error) as e:
            compressor_error = str(e)
            logger.error(f"Compressor failed writing {destination}: {e}")
            producer.terminate()

        if cancellation is not None and cancellation.cancelled:
            producer.terminate()
            raise BackupCancelled("Backup cancelled while streaming")

        try:
            producer_status = producer.wait(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            logger.error(f"{producer.program} did not exit after {self.timeout_seconds} seconds")
            producer.terminate()
            producer_status = producer.wait()

        try:
            bytes_out = destination.stat().st_size
        except OSError:
            bytes_out = 0

        status = PipelineStatus(
            producer_status=producer_status,
            compressor_status=0 if compressor_error is None else 1,
            bytes_in=bytes_in,
            bytes_out=bytes_out,
            compressor_error=compressor_error,
            producer_stderr=producer.stderr_tail(),
        )

        if status.producer_stderr and status.producer_ok:
            logger.debug(f"{producer.program} stderr: {status.producer_stderr}")

        if self.enabled and bytes_in:
            logger.info(
                f"Compressed {bytes_in} to {bytes_out} bytes "
                f"({bytes_out / bytes_in * 100:.1f}%)"
            )

        return status

    def decompress(self, source: Path) -> Iterator[bytes]:
        """
        Yield the decompressed content of an artifact in chunks.

        Non-gzip artifacts are yielded as-is.

        Raises:
            OSError, EOFError, zlib.error: If the archive is corrupt
        """
        opener = gzip.open if is_gzip(source) else open
        with opener(source, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                yield chunk


def is_gzip(path: Path) -> bool:
    """Whether a file is (named as) a gzip archive."""
    return Path(path).name.endswith(".gz")
