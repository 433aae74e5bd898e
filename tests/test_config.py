"""Tests for settings, credentials and cancellation plumbing."""

import os
import signal

import pytest

from dumpstack.config import load_settings
from dumpstack.exceptions import ConfigurationError
from dumpstack.models import Provider, ProviderType
from dumpstack.services import CancellationToken, EnvironmentSecretSource


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("BACKUP_DIR", str(tmp_path))
    monkeypatch.setenv("BACKUP_RETENTION_DAYS", "14")
    monkeypatch.setenv("BACKUP_RETENTION_OVERRIDES", '{"vault": 90}')
    monkeypatch.setenv("BACKUP_PROVIDERS", "postgres, Redis")

    settings = load_settings()

    assert settings.backup_dir == tmp_path
    assert settings.backup_retention_days == 14
    assert settings.backup_retention_overrides == {"vault": 90}
    assert settings.provider_names == ["postgres", "redis"]


def test_overrides_win_over_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("BACKUP_DIR", "/somewhere/else")
    settings = load_settings(backup_dir=tmp_path, log_level=None)
    assert settings.backup_dir == tmp_path
    assert settings.log_level == "INFO"


def test_invalid_settings(monkeypatch):
    monkeypatch.setenv("BACKUP_RETENTION_DAYS", "forever")
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_settings()


def test_engine_defaults():
    settings = load_settings(mysql_container="db1")
    assert settings.engine_defaults("mysql") == {
        "container": "db1",
        "user": "root",
        "database": "",
        "password_env": "MYSQL_ROOT_PASSWORD",
    }


def _provider(**kwargs):
    return Provider(
        name="pg",
        engine=ProviderType.POSTGRES,
        dump_command=("pg_dump",),
        restore_command=("psql",),
        **kwargs,
    )


def test_secret_lookup_prefers_environment(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PG_PASS=from-file\nOTHER=x\n")

    secrets = EnvironmentSecretSource(environ={"PG_PASS": "from-env"}, env_file=env_file)
    assert secrets.get("PG_PASS") == "from-env"
    assert secrets.get("OTHER") == "x"

    provider = _provider(credential_ref="PG_PASS", credential_env="PGPASSWORD")
    assert secrets.environment_for(provider) == {"PGPASSWORD": "from-env"}


def test_missing_secret_is_skipped():
    secrets = EnvironmentSecretSource(environ={}, env_file=None)
    provider = _provider(credential_ref="PG_PASS", credential_env="PGPASSWORD")
    assert secrets.environment_for(provider) == {}
    assert secrets.environment_for(_provider()) == {}


def test_signals_cancel_restores_handlers():
    token = CancellationToken()
    previous = signal.getsignal(signal.SIGTERM)

    with token.signals_cancel():
        os.kill(os.getpid(), signal.SIGTERM)
        assert token.cancelled

    assert signal.getsignal(signal.SIGTERM) is previous
