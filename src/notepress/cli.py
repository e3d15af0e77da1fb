"""Root CLI group for notepress with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from notepress import __version__
from notepress.commands import register_commands
from notepress.commands._base import NpGroup
from notepress.commands._context import AppContext
from notepress.config.settings import NotepressSettings


@click.group(
    cls=NpGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    examples=[
        ("notepress -C ~/blog generate", "Generate a workspace from anywhere."),
        ("notepress --json article list", "Machine-readable output for scripts."),
    ],
)
@click.version_option(version=__version__, prog_name="notepress")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logs.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-C",
    "--workspace",
    "workspace_root",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    default=None,
    help="Run as if started in this workspace directory.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    workspace_root: Path | None,
) -> None:
    """notepress: publish notes as a static site through git."""
    ctx.ensure_object(dict)
    settings = NotepressSettings.from_cli(
        config_path=config_path,
        root=workspace_root.resolve() if workspace_root else None,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
