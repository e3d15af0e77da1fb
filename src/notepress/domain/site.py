"""Site — the singleton-per-workspace record of site-level settings.

``custom`` and ``pages`` are keyed by theme name so switching themes never
destroys another theme's saved values; switching back restores them.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

import pydantic
from pydantic import BaseModel

from notepress.domain.theme import DEFAULT_THEME_NAME


class RSSMode(StrEnum):
    """How articles are exposed in the RSS feed."""

    FULL = "full"
    DIGEST = "digest"
    NONE = "none"


class Site(BaseModel):
    """Persisted site state. Serialized with camelCase keys."""

    model_config = {"populate_by_name": True, "validate_assignment": True}

    theme_name: str = pydantic.Field(default=DEFAULT_THEME_NAME, alias="themeName")
    rss_mode: RSSMode = pydantic.Field(default=RSSMode.NONE, alias="RSSMode")
    rss_length: int = pydantic.Field(default=10, ge=0, alias="RSSLength")
    generated_at: datetime | None = pydantic.Field(default=None, alias="generatedAt")
    custom: dict[str, dict[str, Any]] = pydantic.Field(default_factory=dict)
    pages: dict[str, dict[str, dict[str, Any]]] = pydantic.Field(default_factory=dict)

    def ensure_theme_data(self, theme_name: str) -> None:
        """Make sure per-theme value maps exist for *theme_name*."""
        self.custom.setdefault(theme_name, {})
        self.pages.setdefault(theme_name, {})

    def custom_values(self, theme_name: str | None = None) -> dict[str, Any]:
        return self.custom.get(theme_name or self.theme_name, {})

    def page_values(self, page_name: str, theme_name: str | None = None) -> dict[str, Any]:
        return self.pages.get(theme_name or self.theme_name, {}).get(page_name, {})

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
