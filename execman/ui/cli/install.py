"""
CLI commands for installing and updating executables.

Thin wrappers over ``execman.core.use_cases.install`` and
``execman.core.use_cases.update``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from execman.core.errors import ExecmanError


@click.command()
@click.argument("source")
@click.option(
    "--into",
    "-d",
    "into",
    type=click.Path(file_okay=False),
    default=None,
    help="Install to this directory (default: configured install dir).",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip confirmation prompts.")
@click.option("--include-prereleases", is_flag=True, help="Allow prerelease versions.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    source: str,
    into: str | None,
    assume_yes: bool,
    include_prereleases: bool,
    as_json: bool,
) -> None:
    """Install an executable from a GitHub release.

    SOURCE is github.com/OWNER/REPO, optionally suffixed with @VERSION.

    Examples:

        execman install github.com/sfkleach/pathman

        execman install sfkleach/pathman@v0.3.0 --into ~/bin --yes
    """
    from execman.core.use_cases.install import InstallEngine, InstallRequest, InstallStatus
    from execman.ui.cli.helpers import fail, make_engine_parts, open_session

    if as_json and not assume_yes:
        raise click.UsageError("--json needs --yes (prompts would corrupt the output)")

    try:
        config, registry, audit = open_session(ctx)
        releases, downloader, decisions = make_engine_parts(ctx)
        engine = InstallEngine(
            registry, releases, downloader, decisions, config=config, audit=audit
        )
        result = engine.install(
            InstallRequest(
                source=source,
                target_dir=Path(into) if into else None,
                assume_yes=assume_yes,
                include_prereleases=include_prereleases,
            )
        )
    except ExecmanError as e:
        fail(e, as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.status is InstallStatus.CANCELLED:
        return

    assert result.record is not None
    click.secho(
        f"✅ Installed {result.name} {result.version} → {result.record.path}", fg="green"
    )
    if not result.verified:
        click.secho("   ⚠️  No checksum was verified for this download", fg="yellow")


@click.command()
@click.argument("name", required=False)
@click.option("--all", "-a", "update_all", is_flag=True, help="Update every managed executable.")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip confirmation prompts.")
@click.option("--include-prereleases", is_flag=True, help="Allow prerelease versions.")
@click.option(
    "--backup/--no-backup",
    default=None,
    help="Keep a .backup copy of the replaced executable (default: ask).",
)
@click.pass_context
def update(
    ctx: click.Context,
    name: str | None,
    update_all: bool,
    assume_yes: bool,
    include_prereleases: bool,
    backup: bool | None,
) -> None:
    """Update one (NAME) or all (--all) managed executables."""
    from execman.core.use_cases.update import UpdateEngine, UpdateOutcome, UpdateRequest
    from execman.ui.cli.helpers import fail, make_engine_parts, open_session

    if name and update_all:
        raise click.UsageError("cannot specify both an executable name and --all")
    if not name and not update_all:
        raise click.UsageError("must specify either an executable name or --all")

    try:
        config, registry, audit = open_session(ctx)
        releases, downloader, decisions = make_engine_parts(ctx)
        engine = UpdateEngine(
            registry, releases, downloader, decisions, config=config, audit=audit
        )
        if update_all:
            report = engine.update_all(
                assume_yes=assume_yes,
                include_prereleases=include_prereleases,
                backup=backup,
            )
        else:
            result = engine.update(
                UpdateRequest(
                    name,
                    assume_yes=assume_yes,
                    include_prereleases=include_prereleases,
                    backup=backup,
                )
            )
    except ExecmanError as e:
        fail(e)

    if update_all:
        if report.failed:
            sys.exit(1)
        return

    if result.outcome in (UpdateOutcome.UPDATED, UpdateOutcome.REINSTALLED):
        click.secho(f"✅ {result.name} {result.from_version} → {result.to_version}", fg="green")
        if result.backup_path:
            click.echo(f"   Backup saved to {result.backup_path}")
