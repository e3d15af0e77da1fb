"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from notepress.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from notepress.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("note_id", "name"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="np.ok")
    op = Text(f"  {result.op}", style="np.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="np.key")
    if isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":"), default=str))
    elif key == "note_id" or key == "commit":
        v = Text(str(value), style="np.id")
    elif key in ("url", "full_url"):
        v = Text(str(value), style="np.url")
    elif key.endswith("_dir") or key == "dir":
        v = Text(str(value), style="np.path")
    elif key == "title":
        v = Text(str(value), style="np.title")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="np.error")
    op = Text(f"  {result.op}", style="np.op")
    console.print(label, op, Text(": "), Text(msg), sep="")

    if err is None:
        return
    # Field errors are always useful; other detail only with -v.
    errors = err.detail.get("errors")
    if isinstance(errors, dict):
        for name, messages in errors.items():
            line = Text.assemble("    ", (str(name), "np.key"), ": ", "; ".join(map(str, messages)))
            console.print(line)
    if verbose:
        for k, v in err.detail.items():
            if k != "errors":
                console.print(Text(f"    {k}: {v}"))


# ── Article renderers ─────────────────────────────────────────────────


def _render_articles(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Note", style="np.id", no_wrap=True)
    table.add_column("Title", style="np.title")
    table.add_column("URL", style="np.url")
    table.add_column("Status")
    if verbose:
        table.add_column("Tags")
        table.add_column("Updated", style="dim")

    for item in items:
        published = bool(item.get("published"))
        status = Text(
            "published" if published else "draft",
            style="np.published" if published else "np.draft",
        )
        row: list[Any] = [
            str(item.get("note_id", "")),
            str(item.get("title", "")),
            str(item.get("url", "")),
            status,
        ]
        if verbose:
            row.append(", ".join(item.get("tags", [])))
            row.append(str(item.get("updated_at", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} articles")


def _render_article(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("note_id", "title", "url", "published", "tags"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose and "updated_at" in result.data:
        _field(console, "updated_at", result.data["updated_at"])


def _render_changed(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    ids = result.data.get("changed", result.data.get("removed", []))
    _field(console, "count", result.data.get("count", len(ids)))
    for note_id in ids:
        console.print(Text(f"    {note_id}", style="np.id"))


# ── Site and theme renderers ──────────────────────────────────────────


def _render_themes(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("")
    table.add_column("Theme", style="np.title")
    table.add_column("Version")
    table.add_column("Description", style="dim")
    for item in items:
        table.add_row(
            "*" if item.get("active") else "",
            str(item.get("name", "")),
            str(item.get("version") or ""),
            str(item.get("description") or ""),
        )
    console.print(table)


def _render_fields(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_site / get_page: declared fields beside their values."""
    d = result.data
    if "name" in d:
        header = Text.assemble(
            "Page ", (str(d["name"]), "np.title"), "  ", (str(d.get("url", "")), "np.url")
        )
        console.print(header)
    else:
        console.print(f"Theme [np.title]{d.get('theme', '')}[/np.title]")
        console.print(f"  RSS: {d.get('rss_mode')} ({d.get('rss_length')} items)")
        if d.get("generated_at"):
            console.print(f"  Generated: {d['generated_at']}")

    values = d.get("values", {})
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Field", style="np.key", no_wrap=True)
    table.add_column("Type")
    table.add_column("Value")
    shown: set[str] = set()
    for field in d.get("fields", []):
        name = field.get("name", "")
        shown.add(name)
        table.add_row(name, str(field.get("inputType", "input")), _short(values.get(name)))
    if verbose:
        for name, value in values.items():
            if name not in shown:
                table.add_row(name, "(unused)", _short(value))
    console.print(table)

    pages = d.get("pages")
    if pages:
        console.print(f"\nPages: {', '.join(pages)}")


def _short(value: Any, limit: int = 60) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else _json.dumps(value, default=str)
    text = text.replace("\n", " ")
    return text if len(text) <= limit else text[: limit - 1] + "…"


# ── Generate / publish renderers ──────────────────────────────────────


def _render_generate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "output_dir", d.get("output_dir", ""))
    _field(console, "file_count", d.get("file_count", 0))
    _field(console, "generated_at", d.get("generated_at", ""))
    if verbose:
        for path in d.get("files", []):
            console.print(Text(f"    {path}", style="np.path"))


def _render_publish(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("branch", "commit", "file_count"):
        if key in d:
            _field(console, key, d[key])
    if not d.get("committed", True):
        console.print("  [dim]no changes; branch pushed as is[/dim]")
    deleted = d.get("deleted", [])
    if deleted:
        _field(console, "deleted", len(deleted))
        if verbose:
            for path in deleted:
                console.print(Text(f"    {path}", style="np.path"))


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Articles
    "list_articles": _render_articles,
    "add_article": _render_article,
    "save_article": _render_article,
    "set_url": _render_article,
    "refresh_content": _render_article,
    "publish_articles": _render_changed,
    "unpublish_articles": _render_changed,
    "remove_articles": _render_changed,
    # Site
    "list_themes": _render_themes,
    "get_site": _render_fields,
    "get_page": _render_fields,
    # Output
    "generate": _render_generate,
    "publish": _render_publish,
}
