"""Command group: site settings and page values."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from notepress.commands._base import NpGroup
from notepress.domain.site import RSSMode

if TYPE_CHECKING:
    from notepress.commands._context import AppContext


def parse_assignments(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into a dict.

    VALUE is decoded as JSON when it parses (numbers, booleans, lists);
    ``@path`` reads the value from a file; anything else is a string.
    """
    values: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--field")
        if raw.startswith("@"):
            values[key] = Path(raw[1:]).read_text(encoding="utf-8")
            continue
        try:
            values[key] = json.loads(raw)
        except json.JSONDecodeError:
            values[key] = raw
    return values


_FIELD_OPTION = click.option(
    "-f",
    "--field",
    "fields",
    multiple=True,
    metavar="KEY=VALUE",
    help="Field value; repeatable. Use KEY=@file.md to read from a file.",
)


@click.group(
    cls=NpGroup,
    examples=[
        ("notepress site show", "Site settings and theme site fields."),
        ("notepress site set --rss-mode digest --rss-length 20", "Feed digests of 20 articles."),
        ("notepress site set -f footer=@footer.md", "Read a field value from a file."),
        ("notepress site page about", "Values of the about page."),
        ("notepress site page about -f url=about-me", "Move the about page."),
    ],
)
def site() -> None:
    """Show and edit site settings and page values."""


@site.command("show")
@click.pass_obj
def show_cmd(app: AppContext) -> None:
    """Show site settings and the active theme's site fields."""
    from notepress.services.site import SiteService

    app.emit(SiteService(app.workspace).get_site())


@site.command("set")
@click.option(
    "--rss-mode",
    type=click.Choice([m.value for m in RSSMode]),
    default=None,
    help="RSS feed content.",
)
@click.option("--rss-length", type=int, default=None, help="Number of articles in the feed.")
@_FIELD_OPTION
@click.pass_obj
def set_cmd(
    app: AppContext,
    rss_mode: str | None,
    rss_length: int | None,
    fields: tuple[str, ...],
) -> None:
    """Validate and save site settings."""
    from notepress.services.site import SiteService

    app.emit(
        SiteService(app.workspace).save_site(
            rss_mode=rss_mode,
            rss_length=rss_length,
            custom=parse_assignments(fields),
        )
    )


@site.command("page")
@click.argument("name")
@_FIELD_OPTION
@click.pass_obj
def page_cmd(app: AppContext, name: str, fields: tuple[str, ...]) -> None:
    """Show page NAME, or save it when --field values are given."""
    from notepress.services.site import SiteService

    svc = SiteService(app.workspace)
    if fields:
        app.emit(svc.save_page(name, parse_assignments(fields)))
    else:
        app.emit(svc.get_page(name))
