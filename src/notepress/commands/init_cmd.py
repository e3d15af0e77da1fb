"""Command: workspace initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from notepress.commands._base import NpCommand

if TYPE_CHECKING:
    from notepress.commands._context import AppContext

_INIT_EXAMPLES = [
    ("notepress init", "Set up the current directory."),
    ('notepress init my-blog --title "My Blog"', "Create my-blog/ with a site title."),
    (
        "notepress init . --git-url https://github.com/me/me.github.io.git --branch main",
        "Publish to a GitHub Pages repository.",
    ),
]


@click.command("init", cls=NpCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--name", default=None, help="Workspace name (default: directory name).")
@click.option("--title", default="", help="Site title.")
@click.option("--base-url", default="", help="Public URL the site is served from.")
@click.option("--git-url", default="", help="Repository the site is published to.")
@click.option("--branch", default=None, help="Branch to publish to.")
@click.pass_obj
def init_cmd(
    app: AppContext,
    path: str,
    name: str | None,
    title: str,
    base_url: str,
    git_url: str,
    branch: str | None,
) -> None:
    """Create notepress.toml and the notes directory."""
    from notepress.services.init import InitService

    app.emit(
        InitService.init_workspace(
            Path(path).resolve(),
            name=name,
            title=title,
            base_url=base_url,
            git_url=git_url,
            branch=branch,
        )
    )
