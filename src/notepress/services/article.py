"""ArticleService — notes turned into publishable articles.

Every mutation persists the full article snapshot. The cached note body
(``note_content``) is refreshed from the note store on load; the published
``content`` only changes when :meth:`ArticleService.refresh_content` runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import pydantic

from notepress.domain.article import Article, ArticleCollection, NoteFile, slugify
from notepress.infrastructure.notes import fetch_all
from notepress.services._helpers import now_utc
from notepress.services.base import ARTICLES_KEY, BaseService
from notepress.services.result import ServiceResult

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"title", "url", "tags", "content"})


def article_summary(article: Article) -> dict[str, Any]:
    return {
        "note_id": article.note_id,
        "title": article.title,
        "url": article.url,
        "published": article.published,
        "tags": list(article.tags),
        "updated_at": article.updated_at.isoformat(),
    }


class ArticleService(BaseService):
    """Add, edit, publish and remove articles."""

    def init(self) -> ServiceResult:
        """Load persisted articles and re-read their note bodies."""
        warnings: list[str] = []
        articles: list[Article] = []
        for raw in self._workspace.store.get(ARTICLES_KEY) or []:
            try:
                article = Article.model_validate(raw)
            except pydantic.ValidationError:
                logger.warning("Skipping invalid article record %r", raw, exc_info=True)
                warnings.append("Skipped an invalid article record")
                continue
            try:
                article.note_content = self._workspace.notes.get_note_content(article.note_id)
            except (KeyError, ValueError):
                logger.warning("Note %s for article %r is missing", article.note_id, article.title)
                warnings.append(f"Note {article.note_id} is missing")
            articles.append(article)

        self._session.articles = ArticleCollection(articles)
        return ServiceResult(
            ok=True,
            op="init_articles",
            data={"count": len(articles)},
            warnings=warnings,
        )

    def list_articles(self, *, status: str = "all") -> ServiceResult:
        articles = self._session.require_articles()
        if status == "published":
            items = articles.published
        elif status == "unpublished":
            items = articles.unpublished
        else:
            items = list(articles)
        return ServiceResult(
            ok=True,
            op="list_articles",
            data={
                "items": [article_summary(a) for a in items],
                "count": len(items),
                "tags": articles.all_tags,
            },
        )

    def add_article(self, note_id: str) -> ServiceResult:
        """Create an unpublished article from note *note_id*."""
        articles = self._session.require_articles()
        if articles.get(note_id) is not None:
            return ServiceResult.failure(
                "add_article", "ALREADY_EXISTS", f"Note {note_id!r} is already an article"
            )
        try:
            title = self._workspace.notes.get_note_title(note_id)
            content = self._workspace.notes.get_note_content(note_id)
        except (KeyError, ValueError):
            return ServiceResult.failure("add_article", "NOT_FOUND", f"No note {note_id!r}")

        article = articles.add(
            Article(
                note_id=note_id,
                title=title,
                url=slugify(title),
                content=content,
                note_content=content,
            )
        )
        self._persist_articles()
        logger.info("Added article %s at %s", note_id, article.url)
        return ServiceResult(ok=True, op="add_article", data=article_summary(article))

    def load_files(self, article: Article) -> Article:
        """Fetch the note's resources and split them into images/attachments.

        Raises KeyError when the note no longer exists.
        """
        notes = self._workspace.notes
        if article.note_content is None:
            article.note_content = notes.get_note_content(article.note_id)
        if article.content is None:
            article.content = article.note_content
        files: list[NoteFile] = fetch_all(
            lambda page: notes.list_resources(article.note_id, page=page)
        )
        article.images = [f for f in files if f.is_image]
        article.attachments = [f for f in files if not f.is_image]
        return article

    def load_article(self, note_id: str) -> ServiceResult:
        articles = self._session.require_articles()
        try:
            article = self.load_files(articles.require(note_id))
        except KeyError as exc:
            return ServiceResult.failure("load_article", "NOT_FOUND", str(exc.args[0]))
        return ServiceResult(
            ok=True,
            op="load_article",
            data={
                **article_summary(article),
                "content": article.content,
                "content_changed": article.content != article.note_content,
                "images": [f.model_dump() for f in article.images],
                "attachments": [f.model_dump() for f in article.attachments],
            },
        )

    def save_article(self, note_id: str, **changes: Any) -> ServiceResult:
        """Apply edits to title, url, tags or content."""
        articles = self._session.require_articles()
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            return ServiceResult.failure(
                "save_article",
                "VALIDATION_FAILED",
                f"Cannot edit: {', '.join(unknown)}",
                detail={"errors": {key: ["not editable"] for key in unknown}},
            )
        if articles.get(note_id) is None:
            return ServiceResult.failure("save_article", "NOT_FOUND", f"No article {note_id!r}")
        try:
            article = articles.update(note_id, **changes, updated_at=now_utc())
        except pydantic.ValidationError as exc:
            return ServiceResult.failure(
                "save_article",
                "VALIDATION_FAILED",
                "Invalid article values",
                detail={"errors": {str(e["loc"][0]): [e["msg"]] for e in exc.errors()}},
            )
        except ValueError as exc:
            return ServiceResult.failure(
                "save_article", "INVALID_URL", str(exc), detail={"url": changes.get("url")}
            )
        self._persist_articles()
        return ServiceResult(ok=True, op="save_article", data=article_summary(article))

    def set_url(self, note_id: str, url: str) -> ServiceResult:
        result = self.save_article(note_id, url=url)
        return result.model_copy(update={"op": "set_url"})

    def suggest_url(self, title: str) -> str:
        return self._session.require_articles().get_valid_url(slugify(title))

    def set_published(self, note_ids: Iterable[str], published: bool) -> ServiceResult:
        articles = self._session.require_articles()
        ids = list(note_ids)
        missing = [i for i in ids if articles.get(i) is None]
        if missing:
            return ServiceResult.failure(
                "set_published",
                "NOT_FOUND",
                f"No article for: {', '.join(missing)}",
                detail={"missing": missing},
            )
        changed = articles.set_published(ids, published)
        if changed:
            self._persist_articles()
        return ServiceResult(
            ok=True,
            op="publish_articles" if published else "unpublish_articles",
            data={"changed": [a.note_id for a in changed], "count": len(changed)},
        )

    def remove_articles(self, note_ids: Iterable[str]) -> ServiceResult:
        articles = self._session.require_articles()
        removed = articles.remove(note_ids)
        if removed:
            self._persist_articles()
        return ServiceResult(
            ok=True,
            op="remove_articles",
            data={"removed": [a.note_id for a in removed], "count": len(removed)},
        )

    def refresh_content(self, note_id: str) -> ServiceResult:
        """Re-read the note and make its body the published content."""
        articles = self._session.require_articles()
        article = articles.get(note_id)
        if article is None:
            return ServiceResult.failure("refresh_content", "NOT_FOUND", f"No article {note_id!r}")
        try:
            article.note_content = self._workspace.notes.get_note_content(note_id)
        except KeyError:
            return ServiceResult.failure("refresh_content", "NOT_FOUND", f"No note {note_id!r}")
        articles.refresh_content(note_id)
        self._persist_articles()
        return ServiceResult(ok=True, op="refresh_content", data=article_summary(article))
