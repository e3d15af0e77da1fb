"""Workspace — the single dependency injected into every service.

It owns the settings, the key-value store, the note store, the theme
loader, the plugin manager and the session state (site, active theme,
articles). Session state is loaded once by the services and mutated only
from the host execution context; nothing here is process-global.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from notepress.domain.errors import InvariantViolation
from notepress.infrastructure.notes import DirectoryNoteStore, NoteStore
from notepress.infrastructure.renderer import (
    MarkdownRenderer,
    RenderContext,
    Renderer,
    RenderResult,
)
from notepress.infrastructure.store import JsonFileStore, KeyValueStore
from notepress.infrastructure.themes import ThemeLoader, packaged_themes_dir
from notepress.plugins.manager import PluginManager

if TYPE_CHECKING:
    from notepress.config.settings import NotepressSettings
    from notepress.domain.article import ArticleCollection
    from notepress.domain.site import Site
    from notepress.domain.theme import Theme

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Site, theme and articles loaded for the lifetime of a workspace."""

    site: Site | None = None
    theme: Theme | None = None
    themes: list[Theme] = field(default_factory=list)
    articles: ArticleCollection | None = None

    def require_site(self) -> Site:
        if self.site is None:
            msg = "Site is not loaded"
            raise InvariantViolation(msg)
        return self.site

    def require_theme(self) -> Theme:
        if self.theme is None:
            msg = "No active theme"
            raise InvariantViolation(msg)
        return self.theme

    def require_articles(self) -> ArticleCollection:
        if self.articles is None:
            msg = "Articles are not loaded"
            raise InvariantViolation(msg)
        return self.articles


class Workspace:
    """Everything a service needs, resolved from settings.

    Collaborators can be injected for tests or for embedding notepress in
    another host application.
    """

    def __init__(
        self,
        settings: NotepressSettings,
        *,
        store: KeyValueStore | None = None,
        notes: NoteStore | None = None,
        themes: ThemeLoader | None = None,
        plugins: PluginManager | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.settings = settings
        self.store: KeyValueStore = store or JsonFileStore(
            settings.resolve(settings.workspace.data_dir)
        )
        self.notes: NoteStore = notes or DirectoryNoteStore(
            settings.resolve(settings.workspace.notes_dir)
        )
        self.themes = themes or ThemeLoader(
            [settings.resolve(settings.workspace.themes_dir), packaged_themes_dir()]
        )
        self.plugins = plugins or PluginManager()
        self.renderer: Renderer = renderer or MarkdownRenderer()
        self.session = Session()

    @property
    def root(self) -> Path:
        return self.settings.root

    @property
    def output_dir(self) -> Path:
        return self.settings.resolve(self.settings.generator.output_dir)

    @property
    def shadow_dir(self) -> Path:
        return self.settings.resolve(self.settings.git.shadow_dir)

    def render_markdown(self, markdown: str, context: RenderContext) -> RenderResult:
        """Render through a plugin-provided renderer, else the default one."""
        result = self.plugins.hook.render_markdown(markdown=markdown, context=context)
        if result is not None:
            return result
        return self.renderer.render(markdown, context)
