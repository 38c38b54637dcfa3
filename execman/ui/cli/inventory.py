"""
CLI commands that inspect and prune the registry: check, list, remove, forget.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from execman.core.errors import ExecmanError, NotManagedError


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


@click.command()
@click.argument("name", required=False)
@click.option("--verify", is_flag=True, help="Compare file checksums with the registry.")
@click.option("--include-prereleases", is_flag=True, help="Consider prerelease versions.")
@click.option("--no-skip", is_flag=True, help="Also show up-to-date executables.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    name: str | None,
    verify: bool,
    include_prereleases: bool,
    no_skip: bool,
    as_json: bool,
) -> None:
    """Check for available updates and file integrity."""
    from execman.core.models.executable import FileStatus
    from execman.core.use_cases.check import check_executables
    from execman.ui.cli.helpers import fail, make_engine_parts, open_session

    try:
        config, registry, _ = open_session(ctx)
        releases, _, _ = make_engine_parts(ctx)
        report = check_executables(
            registry,
            releases,
            [name] if name else None,
            include_prereleases=include_prereleases or config.include_prereleases,
            verify=verify,
        )
    except ExecmanError as e:
        fail(e, as_json)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not report.entries:
        click.echo("No managed executables.")
        return

    click.echo("Checking for updates...\n")
    for entry in report.entries:
        if entry.status is FileStatus.MISSING:
            click.secho(f"  {entry.name:<15} {entry.current_version:<9}          MISSING", fg="red")
        elif entry.status is FileStatus.MODIFIED:
            click.secho(f"  {entry.name:<15} {entry.current_version:<9}          MODIFIED", fg="yellow")
        elif entry.error:
            click.secho(f"  {entry.name:<15} error: {entry.error}", fg="red")
        elif entry.update_available:
            click.echo(
                f"  {entry.name:<15} {entry.current_version} → "
                f"{entry.latest_version:<9} update available"
            )
        elif no_skip:
            suffix = " (verified)" if entry.verified else ""
            click.echo(f"  {entry.name:<15} {entry.current_version:<9}          up to date{suffix}")

    parts = []
    if report.missing:
        parts.append(f"{report.missing} missing")
    if report.modified:
        parts.append(f"{report.modified} modified")
    if report.errors:
        parts.append(_plural(report.errors, "error"))
    parts.append(f"{report.up_to_date} up to date")
    parts.append(_plural(report.updates_available, "update") + " available")
    click.echo("\n" + ", ".join(parts) + ".")

    if report.missing or report.modified:
        click.echo("Run 'execman update <name>' to reinstall missing or modified executables.")
    elif report.updates_available:
        click.echo("Run 'execman update --all' to install updates.")


@click.command(name="list")
@click.argument("name", required=False)
@click.option("--long", "-l", "long_format", is_flag=True, help="Show platform and checksum.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, name: str | None, long_format: bool, as_json: bool) -> None:
    """List managed executables."""
    from execman.ui.cli.helpers import fail, open_session

    try:
        _, registry, _ = open_session(ctx)
        if name and name not in registry:
            raise NotManagedError(name)
    except ExecmanError as e:
        fail(e, as_json)

    names = [name] if name else sorted(registry.list())
    records = [(n, registry.get(n)) for n in names]

    if as_json:
        executables = []
        for n, rec in records:
            info = {
                "name": n,
                "source": rec.source,
                "version": rec.version,
                "path": rec.path,
                "installed_at": rec.installed_at.isoformat(),
            }
            if long_format:
                info["platform"] = rec.platform
                info["checksum"] = rec.checksum
            executables.append(info)
        click.echo(json.dumps({"executables": executables}, indent=2))
        return

    if not records:
        click.echo("No managed executables.")
        return

    home = str(Path.home())
    click.echo("Managed executables:\n")
    for n, rec in records:
        path = rec.path
        if path.startswith(home + os.sep):
            path = "~" + path[len(home):]
        source = rec.source.removeprefix("https://")
        click.echo(f"  {n:<15} {rec.version:<9} {path}")
        click.echo(f"  {'':<15} {'':<9} {source}")
        if long_format:
            click.echo(f"  {'':<15} {'':<9} platform: {rec.platform}")
            click.echo(f"  {'':<15} {'':<9} checksum: {rec.checksum}")
        click.echo(f"  {'':<15} {'':<9} installed {rec.installed_at:%Y-%m-%d}")
        click.echo()

    click.echo(f"{_plural(len(records), 'executable')} managed")


@click.command()
@click.argument("name")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip confirmation prompts.")
@click.pass_context
def remove(ctx: click.Context, name: str, assume_yes: bool) -> None:
    """Delete a managed executable and stop managing it."""
    from execman.adapters.console import ConsoleDecisions
    from execman.core.use_cases.remove import remove_executable
    from execman.ui.cli.helpers import fail, open_session

    try:
        _, registry, audit = open_session(ctx)
        result = remove_executable(
            registry, name, assume_yes=assume_yes, decisions=ConsoleDecisions(), audit=audit
        )
    except ExecmanError as e:
        fail(e)

    if result.removed:
        click.secho(f"✅ {name} removed", fg="green")


@click.command()
@click.argument("name")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip confirmation prompts.")
@click.pass_context
def forget(ctx: click.Context, name: str, assume_yes: bool) -> None:
    """Stop managing an executable but keep its file."""
    from execman.adapters.console import ConsoleDecisions
    from execman.core.use_cases.remove import forget_executable
    from execman.ui.cli.helpers import fail, open_session

    try:
        _, registry, audit = open_session(ctx)
        result = forget_executable(
            registry, name, assume_yes=assume_yes, decisions=ConsoleDecisions(), audit=audit
        )
    except ExecmanError as e:
        fail(e)

    if result.removed:
        click.secho(f"✅ {name} is no longer managed; {result.path} was kept", fg="green")
