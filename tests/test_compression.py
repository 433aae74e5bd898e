"""Tests for the compression pipeline."""

import gzip

import pytest

from dumpstack.exceptions import BackupCancelled
from dumpstack.services import CancellationToken, CommandRunner, CompressionPipeline


@pytest.fixture
def runner():
    return CommandRunner(timeout_seconds=10)


def test_compresses_producer_output(runner, tmp_path):
    destination = tmp_path / "out.sql.gz"
    pipeline = CompressionPipeline(enabled=True, timeout_seconds=10)

    with runner.start(["sh", "-c", "printf 'SELECT 1;\\n'"]) as handle:
        status = pipeline.compress(handle, destination)

    assert status.ok
    assert status.bytes_in == len(b"SELECT 1;\n")
    assert status.bytes_out == destination.stat().st_size
    assert gzip.decompress(destination.read_bytes()) == b"SELECT 1;\n"


def test_producer_failure_is_not_masked_by_compressor(runner, tmp_path):
    # gzip happily writes a valid empty archive for a failed dump
    destination = tmp_path / "out.sql.gz"
    pipeline = CompressionPipeline(enabled=True, timeout_seconds=10)

    with runner.start(["sh", "-c", "echo 'auth failed' >&2; exit 1"]) as handle:
        status = pipeline.compress(handle, destination)

    assert status.compressor_ok
    assert status.producer_status == 1
    assert not status.ok
    assert status.bytes_in == 0
    assert "auth failed" in status.producer_stderr


def test_passthrough_when_disabled(runner, tmp_path):
    destination = tmp_path / "out.sql"
    pipeline = CompressionPipeline(enabled=False, timeout_seconds=10)
    assert pipeline.extension("sql") == "sql"

    with runner.start(["sh", "-c", "printf raw"]) as handle:
        status = pipeline.compress(handle, destination)

    assert status.ok
    assert destination.read_bytes() == b"raw"


def test_compressor_failure_is_reported(runner, tmp_path):
    pipeline = CompressionPipeline(enabled=True, timeout_seconds=10)
    destination = tmp_path / "missing-dir" / "out.sql.gz"

    with runner.start(["sh", "-c", "printf data"]) as handle:
        status = pipeline.compress(handle, destination)

    assert not status.compressor_ok
    assert status.compressor_error


def test_cancellation_stops_the_stream(runner, tmp_path):
    token = CancellationToken()
    token.cancel()
    pipeline = CompressionPipeline(enabled=True, timeout_seconds=10)

    with pytest.raises(BackupCancelled):
        with runner.start(["sh", "-c", "yes"]) as handle:
            pipeline.compress(handle, tmp_path / "out.sql.gz", token)


def test_decompress_round_trip(tmp_path):
    path = tmp_path / "a.sql.gz"
    path.write_bytes(gzip.compress(b"payload" * 1000))
    pipeline = CompressionPipeline()
    assert b"".join(pipeline.decompress(path)) == b"payload" * 1000
    assert pipeline.extension("sql") == "sql.gz"
