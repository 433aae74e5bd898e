"""Shared fixtures for dumpstack tests."""

import gzip
from datetime import datetime, timezone
from pathlib import Path

import pytest

from dumpstack.config import Settings
from dumpstack.engines import ProviderRegistry
from dumpstack.models import ProviderType, TargetConfig
from dumpstack.services import EnvironmentSecretSource, build_services

# Enough rows that the compressed artifact clears the test size threshold
DUMP_SCRIPT = 'i=0; while [ $i -lt 200 ]; do echo "INSERT INTO t VALUES ($i);"; i=$((i+1)); done'


class ScriptedConfirmer:
    """Confirmer that answers from a script and records the prompts."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.prompts = []

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else False


def custom_target(name, dump, restore=None, preflight=None, **kwargs) -> TargetConfig:
    """Custom-engine target running sh -c snippets."""
    return TargetConfig(
        name=name,
        engine=ProviderType.CUSTOM,
        dump_command=["sh", "-c", dump],
        restore_command=["sh", "-c", restore or "cat > /dev/null"],
        preflight_command=["sh", "-c", preflight] if preflight else None,
        file_extension=kwargs.pop("file_extension", "sql"),
        **kwargs,
    )


def write_artifact(root: Path, name: str, payload: bytes = b"SELECT 1;\n" * 50) -> Path:
    """Write a gzip artifact directly into the backup root."""
    root.mkdir(parents=True, exist_ok=True)
    path = root / name
    with gzip.open(path, "wb") as f:
        f.write(payload)
    return path


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def settings(backup_dir):
    return Settings(
        backup_dir=backup_dir,
        backup_min_size_bytes=16,
        backup_retention_days=7,
        backup_preflight_timeout_seconds=10,
        backup_command_timeout_seconds=30,
    )


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_services(settings, fixed_now):
    """Build services for a list of targets."""

    def factory(targets, confirmer=None, clock=None, credentials=None, **overrides):
        current = settings.model_copy(update=overrides) if overrides else settings
        return build_services(
            current,
            registry=ProviderRegistry.from_targets(targets),
            confirmer=confirmer or ScriptedConfirmer(),
            credentials=credentials or EnvironmentSecretSource(environ={}, env_file=None),
            clock=clock or (lambda: fixed_now),
        )

    return factory
