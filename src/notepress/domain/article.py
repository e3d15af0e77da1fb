"""Articles — note-backed content units and the collection that owns them.

INVARIANT: The article collection is the single source of truth for
publish status and URL assignment. URLs are unique across the collection.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from typing import Any

import pydantic
from pydantic import BaseModel

from notepress.domain.errors import InvariantViolation
from notepress.domain.fields import is_url_path


def _now() -> datetime:
    return datetime.now(UTC)


class NoteFile(BaseModel):
    """A resource attached to a note (image or other attachment)."""

    model_config = {"frozen": True}

    id: str
    title: str = ""
    mime: str = "application/octet-stream"
    filename: str
    size: int = 0

    @property
    def is_image(self) -> bool:
        return self.mime.startswith("image")


class Article(BaseModel):
    """A published or unpublished unit derived from a single note.

    ``note_content`` caches the note's raw body; ``content`` is the body
    that gets published and is only refreshed on request.
    """

    model_config = {"populate_by_name": True, "validate_assignment": True}

    note_id: str = pydantic.Field(alias="noteId")
    title: str = ""
    url: str = ""
    tags: list[str] = pydantic.Field(default_factory=list)
    content: str | None = None
    note_content: str | None = pydantic.Field(default=None, alias="noteContent")
    published: bool = False
    images: list[NoteFile] = pydantic.Field(default_factory=list)
    attachments: list[NoteFile] = pydantic.Field(default_factory=list)
    created_at: datetime = pydantic.Field(default_factory=_now, alias="createdAt")
    updated_at: datetime = pydantic.Field(default_factory=_now, alias="updatedAt")

    @property
    def files(self) -> list[NoteFile]:
        return [*self.images, *self.attachments]

    def to_store(self) -> dict[str, Any]:
        # The cached note body is re-read from the note store on load.
        return self.model_dump(mode="json", by_alias=True, exclude={"note_content"})


def slugify(title: str) -> str:
    """Turn *title* into a lowercase ASCII URL slug.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
        >>> slugify("Café  au lait")
        'cafe-au-lait'
    """
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text.lower())
    return re.sub(r"[\s_-]+", "-", text).strip("-")


class ArticleCollection:
    """Ordered article list with URL uniqueness and publish bookkeeping."""

    def __init__(self, articles: Iterable[Article] = ()) -> None:
        self._articles: list[Article] = list(articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._articles)

    def __len__(self) -> int:
        return len(self._articles)

    @property
    def published(self) -> list[Article]:
        return [a for a in self._articles if a.published]

    @property
    def unpublished(self) -> list[Article]:
        return [a for a in self._articles if not a.published]

    @property
    def all_tags(self) -> list[str]:
        """Tags of published articles, de-duplicated in first-seen order."""
        seen: dict[str, None] = {}
        for article in self.published:
            for tag in article.tags:
                seen.setdefault(tag, None)
        return list(seen)

    def get(self, note_id: str) -> Article | None:
        for article in self._articles:
            if article.note_id == note_id:
                return article
        return None

    def require(self, note_id: str) -> Article:
        article = self.get(note_id)
        if article is None:
            msg = f"No article for note {note_id!r}"
            raise KeyError(msg)
        return article

    def is_valid_url(self, url: str, note_id: str | None = None) -> bool:
        """A URL is valid when it is a safe relative path unused by any other article."""
        if not is_url_path(url):
            return False
        return all(a.note_id == note_id or a.url != url for a in self._articles)

    def get_valid_url(self, base_url: str) -> str:
        """Return *base_url*, or *base_url* with the first free numeric suffix."""
        if base_url and not is_url_path(base_url):
            base_url = slugify(base_url)
        url = base_url
        index = 1
        while not self.is_valid_url(url):
            url = f"{base_url}-{index}" if base_url else str(index)
            index += 1
        return url

    def add(self, article: Article) -> Article:
        if self.get(article.note_id) is not None:
            msg = f"Note {article.note_id!r} is already an article"
            raise ValueError(msg)
        if not self.is_valid_url(article.url, article.note_id):
            article.url = self.get_valid_url(article.url)
        self._articles.append(article)
        return article

    def remove(self, note_ids: Iterable[str]) -> list[Article]:
        targets = set(note_ids)
        removed = [a for a in self._articles if a.note_id in targets]
        self._articles = [a for a in self._articles if a.note_id not in targets]
        return removed

    def set_published(self, note_ids: Iterable[str], published: bool) -> list[Article]:
        """Flip publish status; returns only the articles that changed."""
        targets = set(note_ids)
        changed: list[Article] = []
        for article in self._articles:
            if article.note_id in targets and article.published != published:
                article.published = published
                changed.append(article)
        return changed

    def update(self, note_id: str, **changes: Any) -> Article:
        article = self.require(note_id)
        url = changes.get("url")
        if url is not None and not self.is_valid_url(url, note_id):
            msg = f"URL {url!r} is invalid or already taken"
            raise ValueError(msg)
        for key, value in changes.items():
            setattr(article, key, value)
        return article

    def refresh_content(self, note_id: str) -> Article:
        """Copy the cached note body into the published content."""
        article = self.require(note_id)
        if article.note_content is None:
            msg = f"Article {note_id!r} has no note content loaded"
            raise InvariantViolation(msg)
        article.content = article.note_content
        article.updated_at = _now()
        return article

    def to_store(self) -> list[dict[str, Any]]:
        return [article.to_store() for article in self._articles]
