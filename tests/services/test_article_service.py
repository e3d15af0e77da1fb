"""Tests for ArticleService — notes turned into publishable articles."""

from __future__ import annotations

from pathlib import Path

import pytest

from notepress.config.settings import NotepressSettings
from notepress.infrastructure.workspace import Workspace
from notepress.services.article import ArticleService
from notepress.services.base import ARTICLES_KEY
from notepress.services.site import SiteService
from tests.conftest import load_workspace, write_note, write_resource


@pytest.fixture
def notes(workspace_root: Path) -> Path:
    write_note(workspace_root, "hello", "Hello body\n", title="Hello World")
    write_note(workspace_root, "second", "# Second Post\n\nMore\n")
    return workspace_root


@pytest.fixture
def service(notes: Path, workspace: Workspace) -> ArticleService:
    return ArticleService(workspace)


class TestAddArticle:
    def test_add_from_note(self, service: ArticleService, workspace: Workspace):
        result = service.add_article("hello")
        assert result.ok
        assert result.data["title"] == "Hello World"
        assert result.data["url"] == "hello-world"
        assert result.data["published"] is False
        assert workspace.store.get(ARTICLES_KEY)[0]["noteId"] == "hello"

    def test_add_twice(self, service: ArticleService):
        service.add_article("hello")
        result = service.add_article("hello")
        assert result.error is not None
        assert result.error.code == "ALREADY_EXISTS"

    def test_missing_note(self, service: ArticleService):
        result = service.add_article("ghost")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.parametrize("note_id", ["../outside", "../../etc/passwd"])
    def test_note_id_outside_notes_dir(self, service: ArticleService, note_id: str):
        result = service.add_article(note_id)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_colliding_slug_gets_suffix(self, workspace_root: Path, service: ArticleService):
        write_note(workspace_root, "again", "x", title="Hello World")
        service.add_article("hello")
        assert service.add_article("again").data["url"] == "hello-world-1"

    def test_suggest_url(self, service: ArticleService):
        service.add_article("hello")
        assert service.suggest_url("Hello world!") == "hello-world-1"
        assert service.suggest_url("Fresh") == "fresh"


class TestEditing:
    def test_save_article(self, service: ArticleService):
        service.add_article("hello")
        result = service.save_article("hello", title="Renamed", tags=["a", "b"])
        assert result.ok
        assert result.data["title"] == "Renamed"
        assert result.data["tags"] == ["a", "b"]

    def test_unknown_fields_rejected(self, service: ArticleService):
        service.add_article("hello")
        result = service.save_article("hello", published=True)
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert "published" in result.error.detail["errors"]

    def test_invalid_value_types(self, service: ArticleService):
        service.add_article("hello")
        result = service.save_article("hello", tags="not-a-list")
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"

    def test_taken_url(self, service: ArticleService):
        service.add_article("hello")
        service.add_article("second")
        result = service.set_url("second", "hello-world")
        assert result.op == "set_url"
        assert result.error is not None
        assert result.error.code == "INVALID_URL"

    def test_empty_url(self, service: ArticleService):
        service.add_article("hello")
        result = service.set_url("hello", "")
        assert result.error is not None
        assert result.error.code == "INVALID_URL"

    @pytest.mark.parametrize("url", ["../x", "a/../../b", "a//b"])
    def test_unsafe_url(self, service: ArticleService, url: str):
        service.add_article("hello")
        result = service.set_url("hello", url)
        assert result.error is not None
        assert result.error.code == "INVALID_URL"
        assert service.load_article("hello").data["url"] == "hello-world"

    def test_save_article_unsafe_url(self, service: ArticleService):
        service.add_article("hello")
        result = service.save_article("hello", title="T", url="../../evil")
        assert result.error is not None
        assert result.error.code == "INVALID_URL"

    def test_edit_missing_article(self, service: ArticleService):
        assert service.save_article("ghost", title="x").error.code == "NOT_FOUND"


class TestPublishing:
    def test_publish_and_list(self, service: ArticleService):
        service.add_article("hello")
        service.add_article("second")
        result = service.set_published(["hello"], True)
        assert result.op == "publish_articles"
        assert result.data["changed"] == ["hello"]
        published = service.list_articles(status="published").data["items"]
        assert [a["note_id"] for a in published] == ["hello"]
        unpublished = service.list_articles(status="unpublished").data["items"]
        assert [a["note_id"] for a in unpublished] == ["second"]
        assert service.list_articles().data["count"] == 2

    def test_unpublish(self, service: ArticleService):
        service.add_article("hello")
        service.set_published(["hello"], True)
        result = service.set_published(["hello"], False)
        assert result.op == "unpublish_articles"
        assert result.data["count"] == 1

    def test_missing_ids(self, service: ArticleService):
        service.add_article("hello")
        result = service.set_published(["hello", "ghost"], True)
        assert result.error is not None
        assert result.error.detail["missing"] == ["ghost"]
        assert service.list_articles(status="published").data["count"] == 0

    def test_remove(self, service: ArticleService, workspace: Workspace):
        service.add_article("hello")
        result = service.remove_articles(["hello", "ghost"])
        assert result.data["removed"] == ["hello"]
        assert workspace.store.get(ARTICLES_KEY) == []


class TestContent:
    def test_refresh_content(self, notes: Path, service: ArticleService):
        service.add_article("hello")
        write_note(notes, "hello", "Edited body\n", title="Hello World")
        assert service.load_article("hello").data["content"] == "Hello body\n"
        result = service.refresh_content("hello")
        assert result.ok
        loaded = service.load_article("hello").data
        assert loaded["content"] == "Edited body\n"
        assert loaded["content_changed"] is False

    def test_content_changed_flag(
        self, notes: Path, settings: NotepressSettings, service: ArticleService
    ):
        service.add_article("hello")
        write_note(notes, "hello", "Edited body\n", title="Hello World")
        reloaded = ArticleService(load_workspace(settings))
        assert reloaded.load_article("hello").data["content_changed"] is True

    def test_load_article_files(self, notes: Path, service: ArticleService):
        write_resource(notes, "hello", "photo.jpg", b"jpg")
        write_resource(notes, "hello", "notes.txt", b"txt")
        service.add_article("hello")
        data = service.load_article("hello").data
        assert [f["filename"] for f in data["images"]] == ["photo.jpg"]
        assert [f["filename"] for f in data["attachments"]] == ["notes.txt"]

    def test_refresh_deleted_note(self, notes: Path, service: ArticleService):
        service.add_article("hello")
        (notes / "notes" / "hello.md").unlink()
        assert service.refresh_content("hello").error.code == "NOT_FOUND"


class TestInit:
    def test_reload_from_store(self, settings: NotepressSettings, service: ArticleService):
        service.add_article("hello")
        service.set_published(["hello"], True)
        articles = load_workspace(settings).session.require_articles()
        article = articles.require("hello")
        assert article.published is True
        assert article.note_content == "Hello body\n"

    def test_missing_note_warns(self, notes: Path, settings: NotepressSettings):
        service = ArticleService(load_workspace(settings))
        service.add_article("hello")
        (notes / "notes" / "hello.md").unlink()
        workspace = Workspace(settings)
        SiteService(workspace).init()
        result = ArticleService(workspace).init()
        assert result.ok
        assert result.warnings == ["Note hello is missing"]
        assert result.data["count"] == 1

    def test_invalid_records_skipped(self, settings: NotepressSettings):
        workspace = Workspace(settings)
        workspace.store.set(ARTICLES_KEY, [{"title": "no id"}])
        result = ArticleService(workspace).init()
        assert result.data["count"] == 0
        assert result.warnings == ["Skipped an invalid article record"]

    def test_malformed_frontmatter_does_not_break_init(
        self, notes: Path, settings: NotepressSettings
    ):
        ArticleService(load_workspace(settings)).add_article("hello")
        (notes / "notes" / "hello.md").write_text(
            "---\ntitle: [oops\n---\nStill here\n", encoding="utf-8"
        )
        workspace = load_workspace(settings)
        article = workspace.session.require_articles().require("hello")
        assert article.note_content == "Still here\n"
