"""Tests for the artifact store."""

from datetime import datetime, timedelta, timezone

import pytest

from dumpstack.exceptions import ArtifactExists, ArtifactNotFound
from dumpstack.services import ArtifactStore, format_bytes, parse_artifact_name

T0 = datetime(2026, 10, 18, 2, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return ArtifactStore(tmp_path / "backups")


def _commit(store, provider, timestamp, payload=b"data", extension="sql.gz"):
    partial = store.allocate(provider, timestamp, extension)
    partial.write_bytes(payload)
    return store.finalize(partial)


def test_artifact_names_use_utc(store):
    local = T0.astimezone(timezone(timedelta(hours=2)))
    path = store.artifact_path("postgres", local, "sql.gz")
    assert path.name == "postgres_20261018_020000.sql.gz"


def test_parse_artifact_name():
    provider, timestamp, extension = parse_artifact_name("pg_main_20261018_020000.sql.gz")
    assert provider == "pg_main"
    assert timestamp == T0
    assert extension == "sql.gz"
    assert parse_artifact_name("notes.txt") is None
    assert parse_artifact_name("postgres_20261399_020000.sql.gz") is None


def test_partial_is_invisible_until_finalized(store):
    partial = store.allocate("postgres", T0, "sql.gz")
    partial.write_bytes(b"in progress")

    assert partial.name.startswith(".")
    assert store.list() == []

    artifact = store.finalize(partial)
    assert not partial.exists()
    assert artifact.path.name == "postgres_20261018_020000.sql.gz"
    assert artifact.size_bytes == len(b"in progress")
    assert [a.name for a in store.list()] == [artifact.name]


def test_allocate_refuses_existing_name(store):
    _commit(store, "postgres", T0)
    with pytest.raises(ArtifactExists):
        store.allocate("postgres", T0, "sql.gz")


def test_allocate_refuses_concurrent_partial(store):
    store.allocate("postgres", T0, "sql.gz")
    with pytest.raises(ArtifactExists):
        store.allocate("postgres", T0, "sql.gz")


def test_discard_is_idempotent(store):
    partial = store.allocate("postgres", T0, "sql.gz")
    assert store.discard(partial) is True
    assert store.discard(partial) is False
    assert not partial.exists()


def test_list_is_newest_first_and_filtered(store):
    _commit(store, "postgres", T0)
    _commit(store, "postgres", T0 + timedelta(days=1))
    _commit(store, "postgres_replica", T0 + timedelta(hours=1))
    _commit(store, "redis", T0 + timedelta(hours=2), extension="rdb.gz")
    (store.root / "README.txt").write_text("not an artifact")

    names = [a.name for a in store.list()]
    assert names == [
        "postgres_20261019_020000.sql.gz",
        "redis_20261018_040000.rdb.gz",
        "postgres_replica_20261018_030000.sql.gz",
        "postgres_20261018_020000.sql.gz",
    ]

    assert [a.provider for a in store.list("postgres")] == ["postgres", "postgres"]
    assert [a.provider for a in store.list("postgres_replica")] == ["postgres_replica"]


def test_list_missing_root_is_empty(tmp_path):
    assert ArtifactStore(tmp_path / "nowhere").list() == []


def test_get_and_delete(store):
    artifact = _commit(store, "postgres", T0, payload=b"x" * 100)
    assert store.get(artifact.path).size_bytes == 100
    assert store.total_size() == 100

    store.delete(artifact.path)
    assert store.list() == []
    with pytest.raises(ArtifactNotFound):
        store.get(artifact.path)


def test_format_bytes():
    assert format_bytes(0) == "0 B"
    assert format_bytes(512) == "512 B"
    assert format_bytes(2048) == "2.0 KB"
    assert format_bytes(5 * 1024 * 1024) == "5.0 MB"
