"""Command group: articles (notes selected for publishing)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notepress.commands._base import NpGroup

if TYPE_CHECKING:
    from notepress.commands._context import AppContext
    from notepress.services.article import ArticleService


def _service(app: AppContext) -> ArticleService:
    from notepress.services.article import ArticleService

    return ArticleService(app.workspace)


@click.group(cls=NpGroup)
def article() -> None:
    """Turn notes into articles and manage their publish status."""


@article.command(
    "list", examples=[("notepress article list --published", "Only published articles.")]
)
@click.option("--published", "status", flag_value="published", help="Only published articles.")
@click.option("--unpublished", "status", flag_value="unpublished", help="Only drafts.")
@click.pass_obj
def list_cmd(app: AppContext, status: str | None) -> None:
    """List articles."""
    app.emit(_service(app).list_articles(status=status or "all"))


@article.command("show")
@click.argument("note_id")
@click.pass_obj
def show_cmd(app: AppContext, note_id: str) -> None:
    """Show an article with its images and attachments."""
    app.emit(_service(app).load_article(note_id))


@article.command(
    "add", examples=[("notepress article add welcome", "Make note welcome.md an article.")]
)
@click.argument("note_id")
@click.pass_obj
def add_cmd(app: AppContext, note_id: str) -> None:
    """Create an unpublished article from note NOTE_ID."""
    app.emit(_service(app).add_article(note_id))


@article.command(
    "publish",
    examples=[
        ("notepress article publish welcome journal/2024-trip", "Publish two articles at once.")
    ],
)
@click.argument("note_ids", nargs=-1, required=True)
@click.pass_obj
def publish_cmd(app: AppContext, note_ids: tuple[str, ...]) -> None:
    """Mark articles as published."""
    app.emit(_service(app).set_published(note_ids, True))


@article.command(
    "unpublish",
    examples=[("notepress article unpublish welcome", "Keep the article but stop generating it.")],
)
@click.argument("note_ids", nargs=-1, required=True)
@click.pass_obj
def unpublish_cmd(app: AppContext, note_ids: tuple[str, ...]) -> None:
    """Mark articles as drafts."""
    app.emit(_service(app).set_published(note_ids, False))


@article.command("remove")
@click.argument("note_ids", nargs=-1, required=True)
@click.pass_obj
def remove_cmd(app: AppContext, note_ids: tuple[str, ...]) -> None:
    """Remove articles. The notes themselves are untouched."""
    app.emit(_service(app).remove_articles(note_ids))


@article.command(
    "refresh",
    examples=[("notepress article refresh welcome", "Replace the content with the current note.")],
)
@click.argument("note_id")
@click.pass_obj
def refresh_cmd(app: AppContext, note_id: str) -> None:
    """Copy the note's current body into the published content."""
    app.emit(_service(app).refresh_content(note_id))


@article.command(
    "url", examples=[("notepress article url welcome hello-world", "Serve at /hello-world/.")]
)
@click.argument("note_id")
@click.argument("url")
@click.pass_obj
def url_cmd(app: AppContext, note_id: str, url: str) -> None:
    """Set the URL slug of an article. Slugs must be unique."""
    app.emit(_service(app).set_url(note_id, url))


@article.command("edit")
@click.argument("note_id")
@click.option("--title", default=None, help="New title.")
@click.option("--tags", default=None, help="Comma-separated tags (replaces existing).")
@click.pass_obj
def edit_cmd(app: AppContext, note_id: str, title: str | None, tags: str | None) -> None:
    """Edit an article's title or tags."""
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title
    if tags is not None:
        changes["tags"] = [t.strip() for t in tags.split(",") if t.strip()]
    if not changes:
        raise click.UsageError("Nothing to change; pass --title and/or --tags.")
    app.emit(_service(app).save_article(note_id, **changes))
