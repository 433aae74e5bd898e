"""Tests for the integrity verifier."""

import gzip
import os

import pytest

from dumpstack.exceptions import ArtifactNotFound
from dumpstack.models import VerificationStatus
from dumpstack.services import IntegrityVerifier


@pytest.fixture
def verifier():
    return IntegrityVerifier(min_size_bytes=1024)


def _gzip_file(path, payload):
    path.write_bytes(gzip.compress(payload))
    return path


def test_valid_large_archive_passes(verifier, tmp_path):
    path = _gzip_file(tmp_path / "pg_20261018_020000.sql.gz", os.urandom(4096))
    result = verifier.verify(path)
    assert result.status == VerificationStatus.PASS
    assert result.passed


def test_small_archive_is_a_warning(verifier, tmp_path):
    path = _gzip_file(tmp_path / "pg_20261018_020000.sql.gz", b"SELECT 1;")
    result = verifier.verify(path)
    assert result.status == VerificationStatus.WARNING
    assert result.passed
    assert "suspiciously small" in result.message
    # Never deleted for being small
    assert path.exists()


def test_truncated_archive_fails(verifier, tmp_path):
    data = gzip.compress(os.urandom(8192))
    path = tmp_path / "pg_20261018_020000.sql.gz"
    path.write_bytes(data[: len(data) // 2])

    result = verifier.verify(path)
    assert result.status == VerificationStatus.FAIL
    assert result.message == "archive is truncated"
    assert not result.passed


def test_garbage_fails(verifier, tmp_path):
    path = tmp_path / "pg_20261018_020000.sql.gz"
    path.write_bytes(b"this is plain text, not gzip" * 100)
    result = verifier.verify(path)
    assert result.status == VerificationStatus.FAIL
    assert result.message == "not a gzip archive"


def test_empty_file_fails(verifier, tmp_path):
    path = tmp_path / "pg_20261018_020000.sql.gz"
    path.write_bytes(b"")
    assert verifier.verify(path).message == "empty archive"


def test_missing_file_raises(verifier, tmp_path):
    with pytest.raises(ArtifactNotFound):
        verifier.verify(tmp_path / "nope.sql.gz")


def test_raw_artifacts_only_get_the_size_check(verifier, tmp_path):
    path = tmp_path / "pg_20261018_020000.sql"
    path.write_bytes(b"x" * 2048)
    assert verifier.check_structure(path) is None
    assert verifier.verify(path).status == VerificationStatus.PASS
