"""Theme discovery and loading.

A theme is a directory ``<name>/`` with a ``theme.yaml`` descriptor, Jinja2
page templates under ``templates/`` (``_*.html`` files are layouts and
partials) and optional static ``assets/``.
User theme directories are searched before the themes packaged with
notepress, so a user theme shadows a built-in one of the same name.
"""

from __future__ import annotations

import logging
import re
from importlib.resources import files
from pathlib import Path
from typing import Any

import pydantic
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from notepress.domain.errors import ThemeLoadError
from notepress.domain.theme import Theme

logger = logging.getLogger(__name__)

DESCRIPTOR_FILENAME = "theme.yaml"
TEMPLATE_SUFFIX = ".html"
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def packaged_themes_dir() -> Path:
    """Directory holding the themes shipped inside the package."""
    return Path(str(files("notepress").joinpath("themes")))


class ThemeLoader:
    """Locate and parse theme bundles from an ordered list of directories."""

    def __init__(self, search_dirs: list[Path]) -> None:
        self._search_dirs = search_dirs

    def _find(self, name: str) -> Path | None:
        if not _NAME_RE.match(name):
            return None
        for base in self._search_dirs:
            candidate = base / name
            if (candidate / DESCRIPTOR_FILENAME).is_file():
                return candidate
        return None

    def load_theme(self, name: str) -> Theme:
        """Load theme *name*. Raises :class:`ThemeLoadError` on any failure."""
        root = self._find(name)
        if root is None:
            raise ThemeLoadError(name, "theme is not installed")

        try:
            raw = (root / DESCRIPTOR_FILENAME).read_text(encoding="utf-8")
            data: Any = YAML(typ="safe").load(raw) or {}
        except (OSError, YAMLError) as exc:
            raise ThemeLoadError(name, f"unreadable {DESCRIPTOR_FILENAME}: {exc}") from exc
        if not isinstance(data, dict):
            raise ThemeLoadError(name, f"{DESCRIPTOR_FILENAME} must be a mapping")

        declared = data.pop("name", name)
        if declared != name:
            logger.warning("Theme directory %s declares name %r; using %r", root, declared, name)

        templates = dict(data.pop("templates", None) or {})
        template_dir = root / "templates"
        if template_dir.is_dir():
            for path in sorted(template_dir.glob(f"*{TEMPLATE_SUFFIX}")):
                # Underscore templates are layouts and partials, not pages.
                if not path.name.startswith("_"):
                    templates.setdefault(path.stem, path.name)

        try:
            theme = Theme.model_validate(
                {**data, "name": name, "templates": templates, "root": root}
            )
        except pydantic.ValidationError as exc:
            raise ThemeLoadError(name, str(exc)) from exc

        missing = [
            page for page, tpl in theme.templates.items() if not (template_dir / tpl).is_file()
        ]
        if missing:
            raise ThemeLoadError(name, f"missing templates for pages: {', '.join(missing)}")

        logger.debug("Loaded theme %s from %s", name, root)
        return theme

    def load_themes(self) -> list[Theme]:
        """Every installed theme that loads; broken ones are skipped."""
        themes: list[Theme] = []
        seen: set[str] = set()
        for base in self._search_dirs:
            if not base.is_dir():
                continue
            for candidate in sorted(base.iterdir()):
                if candidate.name in seen or not (candidate / DESCRIPTOR_FILENAME).is_file():
                    continue
                seen.add(candidate.name)
                try:
                    themes.append(self.load_theme(candidate.name))
                except ThemeLoadError:
                    logger.warning("Skipping broken theme %s", candidate, exc_info=True)
        return themes
