"""GenerateService — render the site into an in-memory output set.

A generation pass moves through a small state machine::

    idle -> initializing -> rendering -> packaging -> done
                 \\______________\\_____________\\-> failed

:meth:`GenerateService.build` never touches the disk; :meth:`generate`
writes the output directory only once the whole set has been assembled,
so a failed pass leaves the previous output untouched.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from email.utils import format_datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from jinja2 import Environment
from markupsafe import Markup

from notepress.domain.article import Article, NoteFile
from notepress.domain.errors import GenerationError, ValidationError
from notepress.domain.fields import validate_values
from notepress.domain.page import ARTICLE_PAGE_NAME, INDEX_PAGE_NAME, Page
from notepress.domain.site import RSSMode, Site
from notepress.domain.theme import Theme
from notepress.infrastructure.filesystem import OutputSet, is_relative_path, write_output_set
from notepress.infrastructure.renderer import RenderAsset, RenderContext
from notepress.infrastructure.templates import build_template_environment
from notepress.services._helpers import now_utc
from notepress.services.article import ArticleService
from notepress.services.base import BaseService
from notepress.services.result import ServiceResult

logger = logging.getLogger(__name__)

RSS_TEMPLATE = "rss.xml"
RSS_PATH = "rss.xml"
ASSETS_PREFIX = "assets"
RESOURCES_PREFIX = "_resources"
PLUGIN_ASSETS_PREFIX = "_plugin"

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


class GenerationState(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RENDERING = "rendering"
    PACKAGING = "packaging"
    DONE = "done"
    FAILED = "failed"


def digest(html_content: str, length: int) -> str:
    """Plain-text excerpt of rendered HTML, at most *length* characters."""
    if length <= 0:
        return ""
    text = _SPACE_RE.sub(" ", html.unescape(_TAG_RE.sub(" ", html_content))).strip()
    if len(text) <= length:
        return text
    return text[: length - 1].rstrip() + "…"


def page_output_path(url: str) -> str:
    """``/`` -> ``index.html``; ``/about`` -> ``about/index.html``."""
    stem = url.strip("/")
    return f"{stem}/index.html" if stem else "index.html"


def resource_path(note_id: str, filename: str) -> str:
    """Output path of a note resource, scoped by note so filenames never clash."""
    return f"{RESOURCES_PREFIX}/{note_id}/{filename}"


class OutputCollector:
    """Accumulates output files; a path may only be produced once.

    Paths must stay inside the output root: ``..``, ``.`` and empty
    segments are rejected here, before anything reaches the disk.
    """

    def __init__(self) -> None:
        self.files: OutputSet = {}
        self._sources: dict[str, str] = {}

    def add(
        self, path: str, content: bytes | str, *, source: str, allow_identical: bool = False
    ) -> None:
        path = path.lstrip("/")
        if not is_relative_path(path):
            msg = f"invalid output path {path!r}"
            raise GenerationError(msg, page=source)
        data = content.encode("utf-8") if isinstance(content, str) else content
        if path in self.files:
            if allow_identical and self.files[path] == data:
                return
            msg = f"{path} is produced by both {self._sources[path]} and {source}"
            raise GenerationError(msg, page=source)
        self.files[path] = data
        self._sources[path] = source


class GenerateService(BaseService):
    """Static site generation for the active theme."""

    state: GenerationState = GenerationState.IDLE

    def _transition(self, state: GenerationState) -> None:
        self.state = state
        logger.debug("Generation state: %s", state)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self) -> ServiceResult:
        """Build the site and replace the output directory with it."""
        generated_at = now_utc()
        try:
            files = self.build(generated_at)
        except ValidationError as exc:
            return ServiceResult.failure(
                "generate",
                "VALIDATION_FAILED",
                str(exc),
                detail={"scope": exc.scope, "errors": exc.errors},
            )
        except GenerationError as exc:
            return ServiceResult.failure(
                "generate", "GENERATION_FAILED", str(exc), detail={"page": exc.page}
            )

        output_dir = self._workspace.output_dir
        try:
            write_output_set(output_dir, files)
        except ValueError as exc:
            return ServiceResult.failure(
                "generate", "GENERATION_FAILED", str(exc), detail={"output_dir": str(output_dir)}
            )
        site = self._session.require_site()
        site.generated_at = generated_at
        self._persist_site()
        logger.info("Generated %d files into %s", len(files), output_dir)

        warnings: list[str] = []
        self._notify(
            "post_generate",
            warnings,
            output_dir=str(output_dir),
            files=sorted(files),
            generated_at=generated_at.isoformat(),
        )
        return ServiceResult(
            ok=True,
            op="generate",
            data={
                "output_dir": str(output_dir),
                "file_count": len(files),
                "files": sorted(files),
                "generated_at": generated_at.isoformat(),
            },
            warnings=warnings,
        )

    def build(self, generated_at: datetime | None = None) -> OutputSet:
        """Render every page into an output set without writing anything.

        Raises:
            ValidationError: site or page values break their field rules.
            GenerationError: a template failed or two outputs share a path.
        """
        generated_at = generated_at or now_utc()
        try:
            self._transition(GenerationState.INITIALIZING)
            theme = self._session.theme
            if theme is None:
                raise GenerationError("No theme is loaded; cannot generate")
            site = self._session.require_site()
            articles = self._load_published()
            pages = self._load_pages(site, theme)
            custom = self._site_values(site, theme)

            self._transition(GenerationState.RENDERING)
            collector = OutputCollector()
            renderer_assets: list[RenderAsset] = []
            env = self._environment(theme, renderer_assets)

            article_page = pages[ARTICLE_PAGE_NAME]
            article_contexts = [
                self._article_context(article, article_page, renderer_assets)
                for article in sorted(articles, key=lambda a: a.created_at, reverse=True)
            ]
            site_ctx = {
                **custom,
                "generated_at": generated_at,
                "rss": f"/{RSS_PATH}" if site.rss_mode != RSSMode.NONE else "",
                "rss_mode": str(site.rss_mode),
                "base_url": self._workspace.settings.site.base_url,
                "articles": article_contexts,
                "tags": self._session.require_articles().all_tags,
                "pages": {n: p.url for n, p in pages.items() if n != ARTICLE_PAGE_NAME},
            }
            for key in ("title", "description"):
                if not site_ctx.get(key):
                    site_ctx[key] = getattr(self._workspace.settings.site, key)

            for name, page in pages.items():
                if name == ARTICLE_PAGE_NAME:
                    continue
                context = {"page": _page_context(page), "site": site_ctx}
                rendered = self._render(env, theme, name, context)
                collector.add(page_output_path(page.url), rendered, source=f"page {name}")

            if article_contexts:
                page_ctx = _page_context(article_page)
                for article_ctx in article_contexts:
                    rendered = self._render(
                        env,
                        theme,
                        ARTICLE_PAGE_NAME,
                        {"page": page_ctx, "site": site_ctx, "article": article_ctx},
                        label=f"article {article_ctx['note_id']}",
                    )
                    collector.add(
                        page_output_path(article_ctx["full_url"]),
                        rendered,
                        source=f"article {article_ctx['note_id']}",
                    )

            if site.rss_mode != RSSMode.NONE:
                collector.add(
                    RSS_PATH, self._render_rss(env, site, site_ctx, articles), source="rss feed"
                )

            self._transition(GenerationState.PACKAGING)
            self._package_assets(collector, theme)
            self._package_resources(collector, articles)
            for asset in renderer_assets:
                collector.add(
                    f"{PLUGIN_ASSETS_PREFIX}/{asset.name}",
                    asset.data,
                    source="renderer",
                    allow_identical=True,
                )

            self._transition(GenerationState.DONE)
            return collector.files
        except Exception:
            self._transition(GenerationState.FAILED)
            raise

    # ------------------------------------------------------------------
    # Initializing
    # ------------------------------------------------------------------

    def _load_published(self) -> list[Article]:
        loader = ArticleService(self._workspace)
        published = self._session.require_articles().published
        for article in published:
            try:
                loader.load_files(article)
            except KeyError as exc:
                msg = f"note {article.note_id} is missing"
                raise GenerationError(msg, page=f"article {article.note_id}") from exc
        return published

    def _load_pages(self, site: Site, theme: Theme) -> dict[str, Page]:
        names = [INDEX_PAGE_NAME]
        names.extend(n for n in theme.page_names() if n not in (INDEX_PAGE_NAME, ARTICLE_PAGE_NAME))
        names.append(ARTICLE_PAGE_NAME)

        pages: dict[str, Page] = {}
        for name in names:
            page = Page(name, site.page_values(name, theme.name), theme)
            errors = page.validate()
            if errors:
                raise ValidationError(errors, scope=f"values for page {name!r}")
            pages[name] = page
        return pages

    def _site_values(self, site: Site, theme: Theme) -> dict[str, Any]:
        values = {field.name: field.default_value for field in theme.site_fields}
        values.update(site.custom_values(theme.name))
        errors = validate_values(theme.site_fields, values)
        if errors:
            raise ValidationError(errors, scope="site fields")
        return values

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _environment(self, theme: Theme, assets: list[RenderAsset]) -> Environment:
        env = build_template_environment(theme.template_dir)
        # Page and site fields link resources as ``:/<note id>/<filename>``.
        resources = {
            f"{a.note_id}/{f.id}": f"{a.note_id}/{f.filename}"
            for a in self._session.require_articles().published
            for f in a.files
        }

        def markdown_filter(value: Any) -> Markup:
            result = self._workspace.render_markdown(str(value or ""), RenderContext(resources))
            assets.extend(result.assets)
            return Markup(result.html)

        env.filters["markdown"] = markdown_filter
        return env

    def _article_context(
        self, article: Article, article_page: Page, assets: list[RenderAsset]
    ) -> dict[str, Any]:
        context = RenderContext({f.id: f"{article.note_id}/{f.filename}" for f in article.files})
        result = self._workspace.render_markdown(article.content or "", context)
        assets.extend(result.assets)
        return {
            "note_id": article.note_id,
            "title": article.title,
            "url": article.url,
            "full_url": f"{article_page.url.rstrip('/')}/{article.url}",
            "tags": list(article.tags),
            "content": article.content or "",
            "html_content": Markup(result.html),
            "images": [_file_context(article.note_id, f) for f in article.images],
            "attachments": [_file_context(article.note_id, f) for f in article.attachments],
            "created_at": article.created_at,
            "updated_at": article.updated_at,
        }

    def _render(
        self,
        env: Environment,
        theme: Theme,
        page_name: str,
        context: dict[str, Any],
        *,
        label: str | None = None,
    ) -> str:
        label = label or f"page {page_name}"
        template_name = theme.templates.get(page_name)
        if template_name is None:
            msg = f"theme {theme.name!r} has no template"
            raise GenerationError(msg, page=label)
        try:
            return env.get_template(template_name).render(context)
        except GenerationError:
            raise
        except Exception as exc:
            logger.debug("Template %s failed", template_name, exc_info=True)
            msg = f"{type(exc).__name__}: {exc}"
            raise GenerationError(msg, page=label) from exc

    def _render_rss(
        self,
        env: Environment,
        site: Site,
        site_ctx: dict[str, Any],
        articles: list[Article],
    ) -> str:
        base_url = self._workspace.settings.site.base_url.rstrip("/")
        by_id = {a["note_id"]: a for a in site_ctx["articles"]}
        recent = sorted(articles, key=lambda a: a.updated_at, reverse=True)[: site.rss_length]
        length = self._workspace.settings.generator.rss_digest_length

        items = []
        for article in recent:
            ctx = by_id[article.note_id]
            link = f"{base_url}{ctx['full_url']}/"
            body = str(ctx["html_content"])
            if site.rss_mode == RSSMode.DIGEST:
                body = digest(body, length)
            items.append(
                {
                    "title": article.title,
                    "link": link,
                    "guid": link,
                    "pub_date": format_datetime(article.updated_at),
                    "description": body,
                    "categories": list(article.tags),
                }
            )
        channel = {
            "title": site_ctx.get("title") or self._workspace.settings.workspace.name,
            "link": f"{base_url}/",
            "description": site_ctx.get("description") or "",
            "last_build_date": format_datetime(site_ctx["generated_at"]),
        }
        try:
            return env.get_template(RSS_TEMPLATE).render(channel=channel, items=items)
        except Exception as exc:
            msg = f"{type(exc).__name__}: {exc}"
            raise GenerationError(msg, page="rss feed") from exc

    # ------------------------------------------------------------------
    # Packaging
    # ------------------------------------------------------------------

    def _package_assets(self, collector: OutputCollector, theme: Theme) -> None:
        asset_dir: Path = theme.asset_dir
        if not asset_dir.is_dir():
            return
        for path in sorted(asset_dir.rglob("*")):
            if path.is_file():
                rel = path.relative_to(asset_dir).as_posix()
                collector.add(f"{ASSETS_PREFIX}/{rel}", path.read_bytes(), source="theme assets")

    def _package_resources(self, collector: OutputCollector, articles: list[Article]) -> None:
        notes = self._workspace.notes
        for article in articles:
            for resource in article.files:
                try:
                    data = notes.read_resource(article.note_id, resource.id)
                except KeyError as exc:
                    msg = f"resource {resource.filename} is missing"
                    raise GenerationError(msg, page=f"article {article.note_id}") from exc
                collector.add(
                    resource_path(article.note_id, resource.filename),
                    data,
                    source=f"article {article.note_id}",
                )


def _file_context(note_id: str, note_file: NoteFile) -> dict[str, Any]:
    return {**note_file.model_dump(), "url": f"/{resource_path(note_id, note_file.filename)}"}


def _page_context(page: Page) -> dict[str, Any]:
    context = dict(page.field_vars)
    context["url"] = page.url
    context.setdefault("name", page.name)
    return context
