"""Pluggy hook specifications for notepress.

``render_markdown`` lets a plugin replace the default markup renderer
(first non-None result wins). The ``post_*`` hooks are notifications
fired after a successful generation or publish.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from notepress.infrastructure.renderer import RenderContext, RenderResult

hookspec = pluggy.HookspecMarker("notepress")
hookimpl = pluggy.HookimplMarker("notepress")


class NotepressHookSpec:
    """Hook specifications for the notepress plugin system."""

    @hookspec(firstresult=True)
    def render_markdown(self, markdown: str, context: RenderContext) -> RenderResult | None:
        """Render note markdown to HTML, or return None to defer."""

    @hookspec
    def post_generate(self, output_dir: str, files: list[str], generated_at: str) -> None:
        """Called after a site generation pass wrote its output."""

    @hookspec
    def post_publish(self, branch: str, commit: str, file_count: int, deleted: list[str]) -> None:
        """Called after the rendered site was pushed."""
