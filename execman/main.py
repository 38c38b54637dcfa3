"""
execman — CLI entrypoint.

Usage:
    execman --help
    execman install github.com/OWNER/REPO[@VERSION]
    execman update --all
    python -m execman.main check
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from execman import __version__
from execman.core.errors import ExecmanError
from execman.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)

SOURCE_URL = "https://github.com/sfkleach/execman"


@click.group()
@click.version_option(version=__version__, prog_name="execman")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config-dir",
    "config_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding config.json and registry.json (default: ~/.config/execman).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_dir: str | None,
) -> None:
    """execman — install and update standalone executables from GitHub releases."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_dir"] = Path(config_dir).expanduser() if config_dir else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def version(as_json: bool) -> None:
    """Print the execman version."""
    if as_json:
        click.echo(json.dumps({"version": __version__, "source": SOURCE_URL}, indent=2))
        return
    click.echo(f"execman version {__version__}")


@cli.command()
@click.argument("folder", type=click.Path(file_okay=False))
@click.pass_context
def init(ctx: click.Context, folder: str) -> None:
    """Make FOLDER the default install directory and create the registry."""
    from execman.core.config.loader import default_config_path, default_registry_path
    from execman.core.use_cases.init import initialize
    from execman.ui.cli.helpers import config_base, fail

    base = config_base(ctx)
    try:
        result = initialize(
            Path(folder),
            config_path=default_config_path(base),
            registry_path=default_registry_path(base),
        )
    except ExecmanError as e:
        fail(e)

    click.secho(f"✅ Configuration written to {result.config_path}", fg="green")
    if result.registry_created:
        click.secho(f"✅ Registry created at {result.registry_path}", fg="green")
    else:
        click.echo(f"   Existing registry kept at {result.registry_path}")
    click.echo(f"   Executables will be installed into {result.install_dir}")

    if not result.on_path:
        click.echo()
        click.secho(f"⚠️  {result.install_dir} is not on your $PATH.", fg="yellow")
        click.echo("Add it by putting this line in your ~/.bashrc or ~/.profile:")
        click.echo(f'  export PATH="{result.install_dir}:$PATH"')


# ── Register command modules ────────────────────────────────────

from execman.ui.cli.install import install, update
from execman.ui.cli.inventory import check, forget, list_cmd, remove

cli.add_command(install)
cli.add_command(update)
cli.add_command(check)
cli.add_command(list_cmd)
cli.add_command(remove)
cli.add_command(forget)


if __name__ == "__main__":
    cli()
