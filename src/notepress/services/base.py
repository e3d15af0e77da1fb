"""BaseService — abstract foundation for all notepress services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides the stores, the theme loader and the session state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from notepress.infrastructure.workspace import Session, Workspace

logger = logging.getLogger(__name__)

SITE_KEY = "site"
ARTICLES_KEY = "articles"


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class SiteService(BaseService):
            def save_site(self, ...) -> ServiceResult:
                site = self._session.require_site()
                ...
                self._persist_site()
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @property
    def _session(self) -> Session:
        return self._workspace.session

    def _persist_site(self) -> None:
        site = self._session.require_site()
        self._workspace.store.set(SITE_KEY, site.to_store())

    def _persist_articles(self) -> None:
        """Persist the full article snapshot (no per-record diffing)."""
        articles = self._session.require_articles()
        self._workspace.store.set(ARTICLES_KEY, articles.to_store())

    def _notify(self, hook_name: str, warnings: list[str], **payload: Any) -> None:
        """Fire a plugin notification; failures become warnings."""
        warnings.extend(self._workspace.plugins.notify(hook_name, **payload))
