"""Tests for the markdown directory note store."""

import logging
from pathlib import Path

import pytest

from notepress.infrastructure.notes import (
    DirectoryNoteStore,
    Paginated,
    fetch_all,
    parse_frontmatter,
)
from tests.conftest import write_resource


@pytest.fixture
def notes_root(tmp_path: Path) -> Path:
    root = tmp_path / "notes"
    root.mkdir()
    (root / "first.md").write_text("---\ntitle: First Post\n---\nHello\n", encoding="utf-8")
    (root / "heading.md").write_text("# From Heading\n\nBody\n", encoding="utf-8")
    (root / "sub").mkdir()
    (root / "sub" / "plain.md").write_text("no title here\n", encoding="utf-8")
    (root / ".hidden").mkdir()
    (root / ".hidden" / "secret.md").write_text("x", encoding="utf-8")
    return root


class TestParseFrontmatter:
    def test_with_frontmatter(self) -> None:
        fm, body = parse_frontmatter("---\ntitle: Hi\ntags: [a]\n---\n\nBody\n")
        assert fm == {"title": "Hi", "tags": ["a"]}
        assert body == "Body\n"

    def test_without_frontmatter(self) -> None:
        assert parse_frontmatter("Just text") == ({}, "Just text")

    def test_unclosed_frontmatter_is_body(self) -> None:
        text = "---\ntitle: Hi\nBody"
        assert parse_frontmatter(text) == ({}, text)

    def test_non_mapping_frontmatter(self) -> None:
        fm, body = parse_frontmatter("---\n- a\n- b\n---\nBody")
        assert fm == {}
        assert body == "Body"

    def test_crlf(self) -> None:
        fm, body = parse_frontmatter("---\r\ntitle: Hi\r\n---\r\nBody")
        assert fm == {"title": "Hi"}
        assert body == "Body"

    def test_malformed_yaml_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="notepress"):
            fm, body = parse_frontmatter("---\ntitle: [unclosed\n---\nBody")
        assert fm == {}
        assert body == "Body"
        assert "malformed frontmatter" in caplog.text


class TestFetchAll:
    def test_aggregates_pages(self) -> None:
        pages = {1: Paginated([1, 2], has_more=True), 2: Paginated([3], has_more=False)}
        calls: list[int] = []

        def fetch(page: int) -> Paginated[int]:
            calls.append(page)
            return pages[page]

        assert fetch_all(fetch) == [1, 2, 3]
        assert calls == [1, 2]


class TestDirectoryNoteStore:
    def test_list_notes(self, notes_root: Path) -> None:
        notes = DirectoryNoteStore(notes_root).list_notes()
        assert {n.id: n.title for n in notes.items} == {
            "first": "First Post",
            "heading": "From Heading",
            "sub/plain": "plain",
        }
        assert notes.has_more is False

    def test_list_notes_query(self, notes_root: Path) -> None:
        notes = DirectoryNoteStore(notes_root).list_notes("post")
        assert [n.id for n in notes.items] == ["first"]

    def test_pagination(self, notes_root: Path) -> None:
        store = DirectoryNoteStore(notes_root, page_size=2)
        first = store.list_notes()
        assert len(first.items) == 2
        assert first.has_more is True
        assert len(fetch_all(lambda page: store.list_notes(page=page))) == 3

    def test_note_content_strips_frontmatter(self, notes_root: Path) -> None:
        store = DirectoryNoteStore(notes_root)
        assert store.get_note_content("first") == "Hello\n"
        assert store.get_note_title("sub/plain") == "plain"

    def test_missing_note(self, notes_root: Path) -> None:
        with pytest.raises(KeyError):
            DirectoryNoteStore(notes_root).get_note_content("nope")

    def test_escaping_id_rejected(self, notes_root: Path) -> None:
        with pytest.raises(ValueError, match="escapes"):
            DirectoryNoteStore(notes_root).get_note_content("../outside")

    def test_resources(self, tmp_path: Path, notes_root: Path) -> None:
        write_resource(tmp_path, "first", "photo.png", b"\x89PNG")
        write_resource(tmp_path, "first", "paper.pdf", b"%PDF")
        store = DirectoryNoteStore(notes_root)
        files = store.list_resources("first").items
        assert [(f.filename, f.is_image) for f in files] == [
            ("paper.pdf", False),
            ("photo.png", True),
        ]
        assert [f.id for f in files] == ["paper.pdf", "photo.png"]
        assert store.read_resource("first", "photo.png") == b"\x89PNG"
        assert store.read_resource("first", "paper.pdf") == b"%PDF"

    def test_resource_dir_not_listed_as_notes(self, tmp_path: Path, notes_root: Path) -> None:
        write_resource(tmp_path, "first", "readme.md", b"# not a note")
        ids = [n.id for n in DirectoryNoteStore(notes_root).list_notes().items]
        assert not any(i.startswith("_resources") for i in ids)

    def test_missing_resource(self, notes_root: Path) -> None:
        with pytest.raises(KeyError):
            DirectoryNoteStore(notes_root).read_resource("first", "nope")

    def test_resources_sharing_a_stem(self, tmp_path: Path, notes_root: Path) -> None:
        write_resource(tmp_path, "first", "photo.png", b"png")
        write_resource(tmp_path, "first", "photo.jpg", b"jpg")
        store = DirectoryNoteStore(notes_root)
        assert [f.id for f in store.list_resources("first").items] == ["photo.jpg", "photo.png"]
        assert store.read_resource("first", "photo.png") == b"png"
        assert store.read_resource("first", "photo.jpg") == b"jpg"
        with pytest.raises(KeyError):
            store.read_resource("first", "photo")

    @pytest.mark.parametrize("resource_id", ["", ".", "..", "../first.md", "sub/x.png"])
    def test_resource_id_must_be_a_filename(self, notes_root: Path, resource_id: str) -> None:
        with pytest.raises(KeyError):
            DirectoryNoteStore(notes_root).read_resource("first", resource_id)

    def test_note_with_malformed_frontmatter_is_listed(self, notes_root: Path) -> None:
        (notes_root / "broken.md").write_text("---\ntitle: [x\n---\n# Broken\n", encoding="utf-8")
        store = DirectoryNoteStore(notes_root)
        assert store.get_note_title("broken") == "Broken"
        assert "broken" in [n.id for n in store.list_notes().items]
