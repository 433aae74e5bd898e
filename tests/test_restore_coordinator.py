"""Tests for the restore coordinator."""

import gzip
import os

import pytest

from conftest import DUMP_SCRIPT, ScriptedConfirmer, custom_target, write_artifact
from dumpstack.exceptions import (
    ArtifactCorrupt,
    ArtifactNotFound,
    ConfigurationError,
    RestoreCommandFailed,
    RestoreDeclined,
    TargetUnreachable,
)


@pytest.fixture
def marker(tmp_path):
    return tmp_path / "restored.sql"


def test_backup_then_restore(make_services, marker):
    confirmer = ScriptedConfirmer(True)
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, restore=f"cat > {marker}")],
        confirmer=confirmer,
    )
    backup = services.backup.backup("db")
    assert backup.succeeded

    result = services.restore.restore(backup.artifact_path)

    with gzip.open(backup.artifact_path, "rb") as f:
        original = f.read()
    assert marker.read_bytes() == original
    assert result.bytes_streamed == len(original)
    assert result.provider == "db"
    assert len(confirmer.prompts) == 1
    assert "OVERWRITE" in confirmer.prompts[0]


def test_declined_restore_runs_nothing(make_services, backup_dir, marker):
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, restore=f"cat > {marker}")],
        confirmer=ScriptedConfirmer(False),
    )
    artifact = write_artifact(backup_dir, "db_20261018_120000.sql.gz")

    with pytest.raises(RestoreDeclined):
        services.restore.restore(artifact)

    assert not marker.exists()


def test_corrupt_artifact_is_refused_before_prompting(make_services, backup_dir, marker):
    confirmer = ScriptedConfirmer(True)
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, restore=f"cat > {marker}")],
        confirmer=confirmer,
    )
    backup_dir.mkdir(parents=True)
    artifact = backup_dir / "db_20261018_120000.sql.gz"
    data = gzip.compress(os.urandom(4096))
    artifact.write_bytes(data[: len(data) // 2])

    with pytest.raises(ArtifactCorrupt):
        services.restore.restore(artifact)

    assert confirmer.prompts == []
    assert not marker.exists()


def test_missing_artifact(make_services, backup_dir):
    services = make_services([custom_target("db", DUMP_SCRIPT)], confirmer=ScriptedConfirmer(True))
    with pytest.raises(ArtifactNotFound):
        services.restore.restore(backup_dir / "db_20261018_120000.sql.gz")


def test_unreachable_target_is_refused_before_prompting(make_services, backup_dir):
    confirmer = ScriptedConfirmer(True)
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, preflight="exit 1")],
        confirmer=confirmer,
    )
    artifact = write_artifact(backup_dir, "db_20261018_120000.sql.gz")

    with pytest.raises(TargetUnreachable):
        services.restore.restore(artifact)

    assert confirmer.prompts == []


def test_failing_restore_command(make_services, backup_dir):
    services = make_services(
        [custom_target("db", DUMP_SCRIPT, restore="cat > /dev/null; echo 'ERROR: relation exists' >&2; exit 3")],
        confirmer=ScriptedConfirmer(True),
    )
    artifact = write_artifact(backup_dir, "db_20261018_120000.sql.gz")

    with pytest.raises(RestoreCommandFailed) as exc_info:
        services.restore.restore(artifact)

    assert "status 3" in str(exc_info.value)
    assert "relation exists" in exc_info.value.details


def test_provider_override(make_services, backup_dir, marker):
    services = make_services(
        [custom_target("staging", DUMP_SCRIPT, restore=f"cat > {marker}")],
        confirmer=ScriptedConfirmer(True),
    )
    artifact = write_artifact(backup_dir, "production_20261018_120000.sql.gz", b"SELECT 42;\n")

    with pytest.raises(ConfigurationError, match="Unknown provider 'production'"):
        services.restore.restore(artifact)

    result = services.restore.restore(artifact, provider_name="staging")
    assert result.provider == "staging"
    assert marker.read_bytes() == b"SELECT 42;\n"


def test_unrecognized_filename_needs_a_provider(make_services, tmp_path):
    services = make_services([custom_target("db", DUMP_SCRIPT)], confirmer=ScriptedConfirmer(True))
    artifact = write_artifact(tmp_path, "manual-export.sql.gz")

    with pytest.raises(ConfigurationError, match="--provider"):
        services.restore.restore(artifact)
