"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy workspace loading and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notepress.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from notepress.config.settings import NotepressSettings
    from notepress.infrastructure.workspace import Workspace
    from notepress.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace is loaded on first use so ``--help`` and ``--version``
    never read the store or load a theme.
    """

    def __init__(self, settings: NotepressSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from notepress.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose, quiet=settings.quiet, log_json=settings.log_json
        )

    @property
    def workspace(self) -> Workspace:
        """The loaded workspace: site, active theme and articles."""
        if self._workspace is None:
            from notepress.infrastructure.workspace import Workspace
            from notepress.services.article import ArticleService
            from notepress.services.site import SiteService

            workspace = Workspace(self.settings)
            workspace.plugins.discover_and_load()
            for result in (SiteService(workspace).init(), ArticleService(workspace).init()):
                self.warn(result.warnings)
            self._workspace = workspace
        return self._workspace

    def warn(self, warnings: list[str]) -> None:
        if self.settings.json_output or self.settings.quiet:
            return
        for warning in warnings:
            click.echo(f"WARNING: {warning}", err=True)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
