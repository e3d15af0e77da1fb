"""Command: render the site into the output directory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notepress.commands._base import NpCommand

if TYPE_CHECKING:
    from notepress.commands._context import AppContext


@click.command(
    cls=NpCommand,
    examples=[
        ("notepress generate", "Render into the output directory."),
        ("notepress -v generate", "Also log each generation state."),
        ("notepress --json generate", "Print the written files as JSON."),
    ],
)
@click.pass_obj
def generate(app: AppContext) -> None:
    """Render published articles and pages with the active theme."""
    from notepress.services.generate import GenerateService

    app.emit(GenerateService(app.workspace).generate())
