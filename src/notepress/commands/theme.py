"""Command group: theme listing and selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notepress.commands._base import NpGroup

if TYPE_CHECKING:
    from notepress.commands._context import AppContext


@click.group(
    cls=NpGroup,
    examples=[
        ("notepress theme list", "Installed themes, active one starred."),
        ("notepress theme use default", "Switch to the packaged theme."),
    ],
)
def theme() -> None:
    """List and switch site themes."""


@theme.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """Show installed themes; the active one is starred."""
    from notepress.services.site import SiteService

    app.emit(SiteService(app.workspace).list_themes())


@theme.command("use")
@click.argument("name")
@click.pass_obj
def use_cmd(app: AppContext, name: str) -> None:
    """Switch the site to theme NAME. Values saved for other themes are kept."""
    from notepress.services.site import SiteService

    app.emit(SiteService(app.workspace).switch_theme(name))
