"""
Shared CLI plumbing — state paths, engine wiring, error rendering.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import click

from execman.core.errors import ExecmanError


def config_base(ctx: click.Context) -> Path | None:
    """The ``--config-dir`` override, if one was given."""
    return ctx.obj.get("config_dir") if ctx.obj else None


def fail(error: ExecmanError, as_json: bool = False) -> NoReturn:
    """Render ``error`` and exit 1."""
    if as_json:
        click.echo(json.dumps(error.to_dict(), indent=2))
    else:
        click.secho(f"❌ {error.message}", fg="red")
        artifacts = error.context.get("artifacts_dir")
        if artifacts:
            click.echo(f"   Downloaded files kept in {artifacts}")
        backup = error.context.get("backup")
        if backup:
            click.echo(f"   Backup of the previous executable: {backup}")
    sys.exit(1)


@dataclass
class DownloadProgress:
    """Progress callback that redraws one line per asset on stderr."""

    enabled: bool = True

    def __call__(self, name: str, done: int, total: int) -> None:
        if not self.enabled:
            return
        if total > 0:
            line = f"  {name}: {done * 100 // total:3d}% ({done // 1024} KiB)"
        else:
            line = f"  {name}: {done // 1024} KiB"
        click.echo(f"\r{line}", nl=False, err=True)
        if total and done >= total:
            click.echo(err=True)


def open_session(ctx: click.Context):
    """Load config, registry, and audit writer for a command.

    Returns:
        (config, registry, audit)

    Raises:
        ConfigError | RegistryIOError
    """
    from execman.core.config.loader import (
        default_audit_path,
        default_config_path,
        default_registry_path,
        load_config,
    )
    from execman.core.persistence.audit import AuditWriter
    from execman.core.persistence.registry_file import Registry

    base = config_base(ctx)
    config = load_config(default_config_path(base))
    registry = Registry.load(default_registry_path(base))
    audit = AuditWriter(default_audit_path(base))
    return config, registry, audit


def make_engine_parts(ctx: click.Context):
    """Release client, downloader, and console decisions for mutating commands."""
    from execman.adapters.console import ConsoleDecisions
    from execman.core.services.artifacts.download import Downloader
    from execman.core.services.release.client import GitHubReleaseClient

    quiet = bool(ctx.obj.get("quiet")) if ctx.obj else False
    progress = DownloadProgress(enabled=not quiet and sys.stderr.isatty())
    return GitHubReleaseClient(), Downloader(progress), ConsoleDecisions()
