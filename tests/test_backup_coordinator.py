"""Tests for the backup coordinator state machine."""

import gzip
import threading
from datetime import timedelta

import pytest

from conftest import DUMP_SCRIPT, custom_target
from dumpstack.exceptions import ConfigurationError
from dumpstack.models import BackupState, ProviderType, TargetConfig, VerificationStatus
from dumpstack.services import EnvironmentSecretSource


def _leftovers(backup_dir):
    """Files in the backup dir other than lock files."""
    return sorted(p.name for p in backup_dir.iterdir() if not p.name.endswith(".lock"))


def test_successful_backup(make_services, backup_dir):
    services = make_services([custom_target("db", DUMP_SCRIPT)])

    result = services.backup.backup("db")

    assert result.state == BackupState.DONE
    assert result.succeeded
    assert result.verification == VerificationStatus.PASS
    assert result.artifact_path == str(backup_dir / "db_20261018_120000.sql.gz")
    with gzip.open(result.artifact_path, "rb") as f:
        assert f.read().startswith(b"INSERT INTO t VALUES (0);")
    assert result.duration_seconds is not None


def test_failed_dump_leaves_no_artifact(make_services, backup_dir):
    services = make_services([
        custom_target("db", "echo 'CREATE TABLE'; echo 'pg_dump: connection lost' >&2; exit 2")
    ])

    result = services.backup.backup("db")

    assert result.state == BackupState.ABORTED
    assert result.aborted_in == BackupState.DUMPING
    assert result.error_category == "DumpFailed"
    assert "status 2" in result.error_message
    assert "connection lost" in result.error_details
    assert services.store.list() == []
    assert _leftovers(backup_dir) == []


def test_empty_dump_is_a_failure(make_services, backup_dir):
    services = make_services([custom_target("db", "true")])

    result = services.backup.backup("db")

    assert result.error_category == "DumpFailed"
    assert "produced no output" in result.error_message
    assert result.aborted_in == BackupState.DUMPING
    assert _leftovers(backup_dir) == []


def test_missing_tool(make_services, backup_dir):
    target = TargetConfig(
        name="db",
        engine=ProviderType.CUSTOM,
        dump_command=["no-such-dump-tool"],
        restore_command=["no-such-restore-tool"],
    )
    services = make_services([target])

    result = services.backup.backup("db")

    assert result.error_category == "ProviderUnavailable"
    assert _leftovers(backup_dir) == []


def test_unreachable_target_aborts_in_preflight(make_services, backup_dir):
    services = make_services([custom_target("db", DUMP_SCRIPT, preflight="exit 1")])

    result = services.backup.backup("db")

    assert result.error_category == "TargetUnreachable"
    assert result.aborted_in == BackupState.PREFLIGHT
    assert services.store.list() == []


def test_sweep_continues_past_failures(make_services):
    services = make_services([
        custom_target("alpha", DUMP_SCRIPT),
        custom_target("bravo", DUMP_SCRIPT, preflight="exit 1"),
        custom_target("charlie", DUMP_SCRIPT),
    ])

    sweep = services.backup.backup_all()

    assert [r.provider for r in sweep.results] == ["alpha", "bravo", "charlie"]
    assert [r.provider for r in sweep.succeeded] == ["alpha", "charlie"]
    assert [r.provider for r in sweep.failed] == ["bravo"]
    assert sweep.exit_code == 1
    assert {a.provider for a in services.store.list()} == {"alpha", "charlie"}


def test_corrupt_artifact_is_kept_and_flagged(make_services, backup_dir):
    # Raw output under a .gz name fails the structural check
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, file_extension="sql.gz")],
        backup_compression=False,
    )

    result = services.backup.backup("db")

    assert result.state == BackupState.DONE
    assert result.verification == VerificationStatus.FAIL
    assert result.error_category == "ArtifactCorrupt"
    assert not result.succeeded
    assert (backup_dir / "db_20261018_120000.sql.gz").exists()


def test_small_artifact_is_a_warning(make_services):
    services = make_services(
        [custom_target("db", "echo 'SELECT 1;'")],
        backup_min_size_bytes=4096,
    )

    result = services.backup.backup("db")

    assert result.succeeded
    assert result.verification == VerificationStatus.WARNING
    assert "suspiciously small" in result.verification_message


def test_expired_artifacts_are_pruned(make_services, backup_dir, fixed_now):
    services = make_services([custom_target("db", DUMP_SCRIPT)])
    old = services.store.artifact_path("db", fixed_now - timedelta(days=8), "sql.gz")
    recent = services.store.artifact_path("db", fixed_now - timedelta(days=2), "sql.gz")
    backup_dir.mkdir(parents=True)
    old.write_bytes(gzip.compress(b"old"))
    recent.write_bytes(gzip.compress(b"recent"))

    result = services.backup.backup("db")

    assert result.pruned_count == 1
    assert not old.exists()
    assert recent.exists()


def test_prune_failure_does_not_fail_the_backup(make_services, monkeypatch):
    services = make_services([custom_target("db", DUMP_SCRIPT)])

    def broken_prune(*args, **kwargs):
        raise OSError("read-only file system")

    monkeypatch.setattr(services.pruner, "prune", broken_prune)

    result = services.backup.backup("db")

    assert result.succeeded
    assert "read-only file system" in result.prune_error


def test_locked_provider_is_skipped(make_services):
    services = make_services([
        custom_target("db", DUMP_SCRIPT),
        custom_target("cache", DUMP_SCRIPT),
    ])

    with services.locks.acquire("db"):
        sweep = services.backup.backup_all()

    busy, done = sweep.results
    assert busy.error_category == "AlreadyRunning"
    assert busy.skipped_busy
    assert done.succeeded
    assert sweep.exit_code == 75


def test_cancelled_before_start(make_services, backup_dir):
    services = make_services([custom_target("db", DUMP_SCRIPT)])
    services.cancellation.cancel()

    result = services.backup.backup("db")

    assert result.error_category == "Cancelled"
    assert services.store.list() == []


def test_cancelled_mid_dump(make_services, backup_dir):
    services = make_services([custom_target("db", "echo 'partial'; exec sleep 30")])
    timer = threading.Timer(0.5, services.cancellation.cancel)
    timer.start()
    try:
        result = services.backup.backup("db")
    finally:
        timer.cancel()

    assert result.error_category == "Cancelled"
    assert _leftovers(backup_dir) == []


def test_credential_is_passed_through_the_environment(make_services, backup_dir):
    target = custom_target(
        "db", 'printf "%s\\n" "$DB_PASSWORD"', password_env="DB_PASSWORD"
    )
    services = make_services(
        [target],
        credentials=EnvironmentSecretSource(environ={"DB_PASSWORD": "s3cret"}, env_file=None),
    )

    result = services.backup.backup("db")

    assert result.succeeded
    with gzip.open(result.artifact_path, "rb") as f:
        assert f.read() == b"s3cret\n"


def test_unknown_provider(make_services):
    services = make_services([custom_target("db", DUMP_SCRIPT)])
    with pytest.raises(ConfigurationError, match="Unknown provider 'nope'"):
        services.backup.backup("nope")


def test_unusable_lock_file_does_not_stop_the_sweep(make_services, backup_dir):
    services = make_services([
        custom_target("alpha", DUMP_SCRIPT),
        custom_target("bravo", DUMP_SCRIPT),
        custom_target("charlie", DUMP_SCRIPT),
    ])
    (backup_dir / ".bravo.lock").mkdir(parents=True)

    sweep = services.backup.backup_all()

    assert [r.provider for r in sweep.results] == ["alpha", "bravo", "charlie"]
    assert [r.provider for r in sweep.failed] == ["bravo"]
    assert sweep.results[1].error_category == "StorageError"
    assert sweep.exit_code == 1
    assert {a.provider for a in services.store.list()} == {"alpha", "charlie"}


def test_io_error_mid_run_is_recorded(make_services, monkeypatch):
    services = make_services([
        custom_target("alpha", DUMP_SCRIPT),
        custom_target("bravo", DUMP_SCRIPT),
    ])
    allocate = services.store.allocate

    def flaky_allocate(provider, timestamp, extension):
        if provider == "alpha":
            raise PermissionError(13, "Permission denied")
        return allocate(provider, timestamp, extension)

    monkeypatch.setattr(services.store, "allocate", flaky_allocate)

    sweep = services.backup.backup_all()

    alpha, bravo = sweep.results
    assert alpha.state == BackupState.ABORTED
    assert alpha.error_category == "StorageError"
    assert "Permission denied" in alpha.error_message
    assert bravo.succeeded
