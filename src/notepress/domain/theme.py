"""Theme — per-page field schemas plus the templates that render them."""

from __future__ import annotations

from pathlib import Path

import pydantic
from pydantic import BaseModel

from notepress.domain.fields import Field

DEFAULT_THEME_NAME = "default"


class Theme(BaseModel):
    """A loaded theme bundle.

    ``templates`` maps a page name to its template file, relative to
    ``root / "templates"``. ``root`` is the theme directory on disk.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    name: str
    version: str | None = None
    description: str | None = None
    pages: dict[str, list[Field]] = pydantic.Field(default_factory=dict)
    site_fields: list[Field] = pydantic.Field(default_factory=list, alias="siteFields")
    templates: dict[str, str] = pydantic.Field(default_factory=dict)
    root: Path = Path()

    @property
    def template_dir(self) -> Path:
        return self.root / "templates"

    @property
    def asset_dir(self) -> Path:
        return self.root / "assets"

    def page_names(self) -> list[str]:
        """Every page the theme can render, in declaration order."""
        names = list(self.pages)
        for name in self.templates:
            if name not in names:
                names.append(name)
        return names
