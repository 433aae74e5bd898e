"""
Dumpstack command-line interface.

Usage:
    dumpstack                         # back up every provider
    dumpstack backup postgres         # back up one provider
    dumpstack list [provider]         # list artifacts
    dumpstack restore <artifact>      # restore (asks for "yes")
    dumpstack cleanup [provider]      # prune expired artifacts
    dumpstack verify <artifact>       # integrity check
    dumpstack delete <artifact>       # delete one artifact (asks for "yes")
    dumpstack providers               # list registered providers

Exit codes: 0 success, 1 failure or declined confirmation, 75 when the
provider was skipped because another run holds its lock.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import DumpstackError, RestoreCommandFailed, RestoreDeclined
from .models import BackupResult, SweepResult, VerificationStatus
from .services import (
    ArtifactStore,
    IntegrityVerifier,
    Services,
    build_services,
    format_bytes,
)

app = typer.Typer(
    name="dumpstack",
    help="Backup orchestration for self-hosted datastores",
    add_completion=False,
)
console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

logger = logging.getLogger(__name__)

INCONSISTENT_TARGET_WARNING = (
    "WARNING: the restore command failed after it started writing to the target. "
    "The target may be partially restored and in an inconsistent state; "
    "verify it manually before putting it back into service."
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _report(error: DumpstackError) -> None:
    """Print a timestamped, categorized error to stderr."""
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    err_console.print(f"{stamp} [{error.category}] {error}", style="red", markup=False)

    details = getattr(error, "details", None)
    if details:
        err_console.print(details, style="dim", markup=False)

    if isinstance(error, RestoreCommandFailed):
        err_console.print(INCONSISTENT_TARGET_WARNING, style="bold red", markup=False)


def _fail(error: DumpstackError) -> None:
    _report(error)
    raise typer.Exit(error.exit_code)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _services(ctx: typer.Context) -> Services:
    try:
        return build_services(_settings(ctx))
    except DumpstackError as e:
        _fail(e)


def _print_result(result: BackupResult) -> None:
    if result.succeeded:
        line = f"{result.provider}: {result.artifact_path} ({format_bytes(result.size_bytes or 0)})"
        console.print(line, markup=False)
        if result.verification == VerificationStatus.WARNING:
            err_console.print(
                f"{result.provider}: warning: {result.verification_message}",
                style="yellow",
                markup=False,
            )
        if result.prune_error:
            err_console.print(
                f"{result.provider}: cleanup failed: {result.prune_error}",
                style="yellow",
                markup=False,
            )
        return

    stamp = (result.completed_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    err_console.print(
        f"{stamp} [{result.error_category}] {result.error_message}",
        style="red",
        markup=False,
    )
    if result.error_details:
        err_console.print(result.error_details, style="dim", markup=False)


def _run_backup(ctx: typer.Context, target: str) -> None:
    services = _services(ctx)
    try:
        with services.cancellation.signals_cancel():
            if target == "all":
                sweep = services.backup.backup_all()
            else:
                sweep = SweepResult(results=[services.backup.backup(target)])
    except DumpstackError as e:
        _fail(e)

    for result in sweep.results:
        _print_result(result)

    if len(sweep.results) > 1:
        console.print(
            f"{len(sweep.succeeded)} succeeded, {len(sweep.failed)} failed",
            markup=False,
        )

    raise typer.Exit(sweep.exit_code)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    backup_dir: Annotated[
        Optional[Path], typer.Option("--backup-dir", help="Artifact directory (BACKUP_DIR)")
    ] = None,
    targets_file: Annotated[
        Optional[Path],
        typer.Option("--targets-file", help="JSON targets file (BACKUP_TARGETS_FILE)"),
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Logging level (LOG_LEVEL)")
    ] = None,
) -> None:
    """Back up, verify, prune and restore datastore snapshots."""
    try:
        settings = load_settings(
            backup_dir=backup_dir,
            backup_targets_file=targets_file,
            log_level=log_level,
        )
    except DumpstackError as e:
        _fail(e)

    _configure_logging(settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        _run_backup(ctx, "all")


@app.command()
def backup(
    ctx: typer.Context,
    target: Annotated[str, typer.Argument(help="Provider name or 'all'")] = "all",
) -> None:
    """Back up one provider, or every provider."""
    _run_backup(ctx, target)


@app.command("list")
def list_artifacts(
    ctx: typer.Context,
    provider: Annotated[Optional[str], typer.Argument(help="Only this provider")] = None,
) -> None:
    """List backups, newest first."""
    store = ArtifactStore(_settings(ctx).backup_dir)
    artifacts = store.list(provider)

    if not artifacts:
        console.print("No backups found", markup=False)
        return

    table = Table(title="Available backups")
    table.add_column("Provider")
    table.add_column("Created (UTC)")
    table.add_column("Size", justify="right")
    table.add_column("Path", overflow="fold")

    for artifact in artifacts:
        table.add_row(
            artifact.provider,
            artifact.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            format_bytes(artifact.size_bytes),
            str(artifact.path),
        )

    console.print(table)
    total = store.total_size(provider)
    console.print(
        f"{len(artifacts)} backup(s), total size: {format_bytes(total)}", markup=False
    )


@app.command()
def restore(
    ctx: typer.Context,
    artifact: Annotated[Path, typer.Argument(help="Artifact to restore")],
    provider: Annotated[
        Optional[str],
        typer.Option("--provider", help="Restore into this provider instead of the one in the filename"),
    ] = None,
) -> None:
    """Restore a backup. Overwrites live data; requires typing 'yes'."""
    services = _services(ctx)

    try:
        result = services.restore.restore(artifact, provider)
    except DumpstackError as e:
        _fail(e)

    console.print(
        f"{result.provider}: restored from {result.artifact_path} "
        f"({format_bytes(result.bytes_streamed)} in {result.duration_seconds}s)",
        markup=False,
    )
    if result.notice:
        err_console.print(result.notice, style="yellow", markup=False)


@app.command()
def cleanup(
    ctx: typer.Context,
    provider: Annotated[Optional[str], typer.Argument(help="Only this provider")] = None,
) -> None:
    """Delete backups older than the retention window."""
    services = _services(ctx)

    try:
        if provider is not None:
            services.registry.resolve(provider)
        pruned = services.pruner.prune(services.retention, provider=provider)
    except DumpstackError as e:
        _fail(e)

    console.print(
        f"Deleted {pruned.count} old backup(s), freed {format_bytes(pruned.bytes_freed)}",
        markup=False,
    )
    for error in pruned.errors:
        err_console.print(f"cleanup error: {error}", style="red", markup=False)

    if pruned.errors:
        raise typer.Exit(1)


@app.command()
def verify(
    ctx: typer.Context,
    artifact: Annotated[Path, typer.Argument(help="Artifact to verify")],
) -> None:
    """Check a backup's integrity: prints pass, warning or fail."""
    verifier = IntegrityVerifier(min_size_bytes=_settings(ctx).backup_min_size_bytes)

    try:
        result = verifier.verify(artifact)
    except DumpstackError as e:
        _fail(e)

    label = {
        VerificationStatus.PASS: ("PASS", "green"),
        VerificationStatus.WARNING: ("WARNING", "yellow"),
        VerificationStatus.FAIL: ("FAIL", "red"),
    }[result.status]

    console.print(
        f"{label[0]}: {result.path} ({format_bytes(result.size_bytes)}) - {result.message}",
        style=label[1],
        markup=False,
    )

    if not result.passed:
        raise typer.Exit(1)


@app.command()
def delete(
    ctx: typer.Context,
    artifact: Annotated[Path, typer.Argument(help="Artifact to delete")],
) -> None:
    """Delete one backup. Requires typing 'yes'."""
    services = _services(ctx)

    try:
        found = services.store.get(artifact)
    except DumpstackError as e:
        _fail(e)

    if not services.restore.confirmer.confirm(f"Delete {found.path}?"):
        _fail(RestoreDeclined("Delete cancelled by operator"))

    services.store.delete(found.path)
    console.print(f"Deleted {found.path}", markup=False)


@app.command()
def providers(ctx: typer.Context) -> None:
    """List registered providers."""
    services = _services(ctx)

    table = Table(title="Registered providers")
    table.add_column("Name")
    table.add_column("Engine")
    table.add_column("Mode")
    table.add_column("Target")
    table.add_column("Retention", justify="right")

    for provider in services.registry:
        days = services.retention.max_age_for(provider.name).days
        table.add_row(
            provider.name,
            provider.engine.value,
            provider.mode.value,
            provider.target_label,
            f"{days}d",
        )

    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
