"""Commands: git repository setup and site publishing.

Progress is drawn on stderr. Ctrl-C during the grace delay before staging
cancels the publish; once staging started the run completes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notepress.commands._base import NpCommand, NpGroup

if TYPE_CHECKING:
    from notepress.commands._context import AppContext


def _show_progress(app: AppContext) -> bool:
    return not (app.settings.json_output or app.settings.quiet)


@click.group(cls=NpGroup)
def git() -> None:
    """Manage the local clone of the publish repository."""


@git.command("init", examples=[("notepress git init", "Throw away the clone and fetch it again.")])
@click.pass_obj
def git_init(app: AppContext) -> None:
    """Wipe and re-clone the publish repository (shallow)."""
    from notepress.output.progress import GitProgress
    from notepress.services.publish import PublishService

    with GitProgress(enabled=_show_progress(app)) as progress:
        result = PublishService(app.workspace).init_repo(on_event=progress.handle)
    app.emit(result)


@click.command(
    cls=NpCommand,
    examples=[
        ("notepress publish", "Generate, then push after a short grace delay."),
        ("notepress publish --no-generate", "Push the current output as is."),
        ("NOTEPRESS_GIT__TOKEN=ghp_xxx notepress publish", "Authenticate over HTTPS."),
    ],
)
@click.option(
    "--no-generate",
    is_flag=True,
    help="Push the existing output directory without regenerating.",
)
@click.pass_obj
def publish(app: AppContext, no_generate: bool) -> None:
    """Generate the site and push it to the configured git branch."""
    from notepress.output.progress import GitProgress
    from notepress.services.generate import GenerateService
    from notepress.services.publish import PublishService

    workspace = app.workspace
    if not no_generate:
        result = GenerateService(workspace).generate()
        if not result.ok:
            app.emit(result)
        app.warn(result.warnings)

    with GitProgress(enabled=_show_progress(app)) as progress:
        result = PublishService(workspace).publish(on_event=progress.handle)
    app.emit(result)
