"""Note store interface and a markdown-directory implementation.

The core only depends on the paginated shape ``{items, has_more}``;
:func:`fetch_all` aggregates pages transparently.
"""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from notepress.domain.article import NoteFile

RESOURCE_DIR_NAME = "_resources"
_FRONTMATTER_DELIMITER = "---"

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class NoteSummary:
    """Listing entry for one note."""

    id: str
    title: str
    updated_at: datetime


@dataclass(frozen=True)
class Paginated(Generic[T]):
    """One page of a listing."""

    items: list[T] = field(default_factory=list)
    has_more: bool = False


class NoteStore(Protocol):
    """Read-only access to the host's notes and their resources."""

    def list_notes(self, query: str | None = None, *, page: int = 1) -> Paginated[NoteSummary]: ...

    def get_note_content(self, note_id: str) -> str: ...

    def get_note_title(self, note_id: str) -> str: ...

    def list_resources(self, note_id: str, *, page: int = 1) -> Paginated[NoteFile]: ...

    def read_resource(self, note_id: str, resource_id: str) -> bytes: ...


def fetch_all(fetch: Callable[[int], Paginated[T]]) -> list[T]:
    """Call ``fetch(page)`` from page 1 until ``has_more`` is false."""
    result: list[T] = []
    page = 1
    has_more = True
    while has_more:
        batch = fetch(page)
        result.extend(batch.items)
        has_more = batch.has_more
        page += 1
    return result


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split optional YAML frontmatter from a markdown body.

    Returns ``({}, content)`` when the text has no ``---`` delimited block.
    Frontmatter that is not valid YAML is logged and treated as absent.
    """
    normalized = content.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, content

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return {}, content

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])
    if body.startswith("\n"):
        body = body[1:]

    try:
        fm = YAML(typ="safe").load(yaml_block) or {}
    except YAMLError as exc:
        logger.warning("Ignoring malformed frontmatter: %s", exc)
        return {}, body
    if not isinstance(fm, dict):
        return {}, body
    return fm, body


def _title_of(path: Path, frontmatter: dict[str, Any], body: str) -> str:
    title = frontmatter.get("title")
    if title:
        return str(title)
    for line in body.splitlines():
        if line.startswith("# "):
            return line[2:].strip()
    return path.stem


class DirectoryNoteStore:
    """Notes are ``*.md`` files under *root*; ids are relative paths sans suffix.

    Resources for note ``a/b`` live in ``root/_resources/a/b/``.
    """

    def __init__(self, root: Path, *, page_size: int = 50) -> None:
        self._root = root
        self._page_size = page_size

    def _note_path(self, note_id: str) -> Path:
        path = (self._root / f"{note_id}.md").resolve()
        if not path.is_relative_to(self._root.resolve()):
            msg = f"Note id escapes notes directory: {note_id!r}"
            raise ValueError(msg)
        return path

    def _resource_dir(self, note_id: str) -> Path:
        return self._root / RESOURCE_DIR_NAME / note_id

    def _paginate(self, items: list[T], page: int) -> Paginated[T]:
        start = (page - 1) * self._page_size
        end = start + self._page_size
        return Paginated(items=items[start:end], has_more=end < len(items))

    def list_notes(self, query: str | None = None, *, page: int = 1) -> Paginated[NoteSummary]:
        notes: list[NoteSummary] = []
        if self._root.is_dir():
            for path in sorted(self._root.rglob("*.md")):
                rel = path.relative_to(self._root)
                if rel.parts[0] == RESOURCE_DIR_NAME or any(p.startswith(".") for p in rel.parts):
                    continue
                frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
                title = _title_of(path, frontmatter, body)
                if query and query.lower() not in title.lower():
                    continue
                notes.append(
                    NoteSummary(
                        id=rel.with_suffix("").as_posix(),
                        title=title,
                        updated_at=datetime.fromtimestamp(path.stat().st_mtime, UTC),
                    )
                )
        return self._paginate(notes, page)

    def get_note_content(self, note_id: str) -> str:
        """Note body without frontmatter. Raises KeyError for unknown notes."""
        path = self._note_path(note_id)
        if not path.is_file():
            raise KeyError(note_id)
        _frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
        return body

    def get_note_title(self, note_id: str) -> str:
        path = self._note_path(note_id)
        if not path.is_file():
            raise KeyError(note_id)
        frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
        return _title_of(path, frontmatter, body)

    def list_resources(self, note_id: str, *, page: int = 1) -> Paginated[NoteFile]:
        resource_dir = self._resource_dir(note_id)
        files: list[NoteFile] = []
        if resource_dir.is_dir():
            for path in sorted(p for p in resource_dir.iterdir() if p.is_file()):
                mime, _encoding = mimetypes.guess_type(path.name)
                files.append(
                    NoteFile(
                        id=path.name,
                        title=path.name,
                        mime=mime or "application/octet-stream",
                        filename=path.name,
                        size=path.stat().st_size,
                    )
                )
        return self._paginate(files, page)

    def read_resource(self, note_id: str, resource_id: str) -> bytes:
        """Bytes of the resource whose id is its exact filename."""
        if resource_id in ("", ".", "..") or "/" in resource_id or "\\" in resource_id:
            raise KeyError(f"{note_id}/{resource_id}")
        path = self._resource_dir(note_id) / resource_id
        if path.is_file():
            return path.read_bytes()
        raise KeyError(f"{note_id}/{resource_id}")
