"""SiteService — site settings, theme selection and page values.

Theme failures are absorbed here: a theme that fails to load leaves the
previously active theme (or the default one) in place and is reported
through the result, never raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pydantic

from notepress.domain.errors import ThemeLoadError
from notepress.domain.fields import validate_values
from notepress.domain.page import ARTICLE_PAGE_NAME, INDEX_PAGE_NAME, Page
from notepress.domain.site import RSSMode, Site
from notepress.domain.theme import DEFAULT_THEME_NAME, Theme
from notepress.services._helpers import field_summary
from notepress.services.base import SITE_KEY, BaseService
from notepress.services.result import ServiceResult

logger = logging.getLogger(__name__)


def available_pages(theme: Theme) -> list[str]:
    """Page names a theme exposes, with index and article always present."""
    names = [INDEX_PAGE_NAME, ARTICLE_PAGE_NAME]
    names.extend(name for name in theme.page_names() if name not in names)
    return names


class SiteService(BaseService):
    """Loads and edits the site record and the active theme."""

    def init(self) -> ServiceResult:
        """Load the persisted site over defaults and activate its theme."""
        warnings: list[str] = []
        raw = self._workspace.store.get(SITE_KEY)
        try:
            site = Site.model_validate(raw or {})
        except pydantic.ValidationError as exc:
            logger.warning("Persisted site record is invalid; using defaults", exc_info=True)
            warnings.append(f"Ignoring invalid site record: {exc.error_count()} error(s)")
            site = Site()

        site.ensure_theme_data(site.theme_name)
        self._session.site = site
        self._session.themes = self._workspace.themes.load_themes()

        loaded = self.load_theme(site.theme_name)
        warnings.extend(loaded.warnings)
        if not loaded.ok and loaded.error is not None:
            warnings.append(loaded.error.message)

        theme = self._session.theme
        return ServiceResult(
            ok=True,
            op="init_site",
            data={
                "theme": theme.name if theme else None,
                "themes": [t.name for t in self._session.themes],
            },
            warnings=warnings,
        )

    def load_theme(self, name: str) -> ServiceResult:
        """Activate theme *name*; keeps the previous theme on failure."""
        site = self._session.require_site()
        try:
            theme = self._workspace.themes.load_theme(name)
        except ThemeLoadError as exc:
            logger.warning("%s", exc)
            warnings: list[str] = []
            if self._session.theme is None and name != DEFAULT_THEME_NAME:
                try:
                    self._session.theme = self._workspace.themes.load_theme(DEFAULT_THEME_NAME)
                    site.ensure_theme_data(DEFAULT_THEME_NAME)
                    warnings.append(f"Falling back to the {DEFAULT_THEME_NAME!r} theme")
                except ThemeLoadError as fallback_exc:
                    logger.error("%s", fallback_exc)
                    warnings.append(str(fallback_exc))
            active = self._session.theme
            return ServiceResult.failure(
                "load_theme",
                "THEME_LOAD_FAILED",
                str(exc),
                detail={
                    "theme": name,
                    "reason": exc.reason,
                    "active_theme": active.name if active else None,
                },
                warnings=warnings,
            )

        self._session.theme = theme
        site.ensure_theme_data(theme.name)
        return ServiceResult(
            ok=True,
            op="load_theme",
            data={"theme": theme.name, "pages": available_pages(theme)},
        )

    def list_themes(self) -> ServiceResult:
        active = self._session.theme
        themes = self._session.themes or self._workspace.themes.load_themes()
        self._session.themes = themes
        return ServiceResult(
            ok=True,
            op="list_themes",
            data={
                "items": [
                    {
                        "name": t.name,
                        "version": t.version,
                        "description": t.description,
                        "active": active is not None and t.name == active.name,
                    }
                    for t in themes
                ],
                "count": len(themes),
            },
        )

    def switch_theme(self, name: str) -> ServiceResult:
        """Make *name* the site theme. Other themes' values are untouched."""
        site = self._session.require_site()
        result = self.load_theme(name)
        if not result.ok:
            return result.model_copy(update={"op": "switch_theme"})
        site.theme_name = name
        self._persist_site()
        logger.info("Switched theme to %s", name)
        return ServiceResult(ok=True, op="switch_theme", data=result.data)

    def get_site(self) -> ServiceResult:
        site = self._session.require_site()
        theme = self._session.require_theme()
        values = {
            field.name: field.default_value for field in theme.site_fields
        } | site.custom_values(theme.name)
        return ServiceResult(
            ok=True,
            op="get_site",
            data={
                "theme": theme.name,
                "rss_mode": str(site.rss_mode),
                "rss_length": site.rss_length,
                "generated_at": site.generated_at.isoformat() if site.generated_at else None,
                "fields": field_summary(theme.site_fields),
                "values": values,
                "pages": available_pages(theme),
            },
        )

    def save_site(
        self,
        *,
        rss_mode: RSSMode | str | None = None,
        rss_length: int | None = None,
        custom: Mapping[str, Any] | None = None,
    ) -> ServiceResult:
        """Validate and persist site settings for the active theme."""
        site = self._session.require_site()
        theme = self._session.require_theme()

        values = {**site.custom_values(theme.name), **(custom or {})}
        errors = validate_values(theme.site_fields, values)

        update: dict[str, Any] = {}
        if rss_mode is not None:
            update["rss_mode"] = rss_mode
        if rss_length is not None:
            update["rss_length"] = rss_length
        try:
            Site.model_validate({**site.model_dump(), **update})
        except pydantic.ValidationError as exc:
            for err in exc.errors():
                errors.setdefault(str(err["loc"][0]), []).append(err["msg"])

        if errors:
            return ServiceResult.failure(
                "save_site",
                "VALIDATION_FAILED",
                "Invalid site settings",
                detail={"errors": errors},
            )

        for key, value in update.items():
            setattr(site, key, value)
        site.custom[theme.name] = values
        self._persist_site()
        return ServiceResult(
            ok=True,
            op="save_site",
            data={"rss_mode": str(site.rss_mode), "rss_length": site.rss_length, "values": values},
        )

    def get_page(self, name: str) -> ServiceResult:
        site = self._session.require_site()
        theme = self._session.require_theme()
        if name not in available_pages(theme):
            return ServiceResult.failure(
                "get_page", "NOT_FOUND", f"Theme {theme.name!r} has no page {name!r}"
            )
        page = Page(name, site.page_values(name, theme.name), theme)
        return ServiceResult(
            ok=True,
            op="get_page",
            data={
                "name": page.name,
                "url": page.url,
                "fields": field_summary(page.fields),
                "values": page.field_vars,
            },
        )

    def save_page(self, name: str, values: Mapping[str, Any]) -> ServiceResult:
        """Merge *values* into page *name*, validate, and persist."""
        site = self._session.require_site()
        theme = self._session.require_theme()
        if name not in available_pages(theme):
            return ServiceResult.failure(
                "save_page", "NOT_FOUND", f"Theme {theme.name!r} has no page {name!r}"
            )

        page = Page(name, site.page_values(name, theme.name), theme)
        page.set_values(values)
        errors = page.validate()
        if errors:
            return ServiceResult.failure(
                "save_page",
                "VALIDATION_FAILED",
                f"Invalid values for page {name!r}",
                detail={"errors": errors},
            )

        site.pages.setdefault(theme.name, {})[name] = page.output_values()
        self._persist_site()
        return ServiceResult(
            ok=True,
            op="save_page",
            data={"name": name, "url": page.url, "values": page.field_vars},
        )
