"""Subcommand modules for notepress.

Provides register_commands(), which imports command modules lazily so
``notepress --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root group."""
    # --- Groups ---
    from notepress.commands.article import article
    from notepress.commands.publish import git
    from notepress.commands.site import site
    from notepress.commands.theme import theme

    cli.add_command(theme)
    cli.add_command(site)
    cli.add_command(article)
    cli.add_command(git)

    # --- Standalone commands ---
    from notepress.commands.generate import generate
    from notepress.commands.init_cmd import init_cmd
    from notepress.commands.publish import publish

    cli.add_command(init_cmd)
    cli.add_command(generate)
    cli.add_command(publish)
