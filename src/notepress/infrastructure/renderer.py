"""Markup renderer: note markdown to HTML.

The generator treats the renderer as opaque: ``render(markdown, context)``
returns HTML plus any assets the output needs. The default renderer uses
markdown-it-py and rewrites note resource links (``:/<resource id>``) to
their published location ``/_resources/<note id>/<filename>``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from markdown_it import MarkdownIt
from markdown_it.token import Token

RESOURCE_LINK_PREFIX = ":/"
RESOURCE_URL_PREFIX = "/_resources/"


@dataclass(frozen=True)
class RenderAsset:
    """A file the rendered HTML depends on (stylesheet, script, font)."""

    name: str
    mime: str
    data: bytes


@dataclass(frozen=True)
class RenderResult:
    html: str
    assets: list[RenderAsset] = field(default_factory=list)


@dataclass(frozen=True)
class RenderContext:
    """Per-call inputs. ``resources`` maps resource id to ``<note id>/<filename>``."""

    resources: Mapping[str, str] = field(default_factory=dict)


class Renderer(Protocol):
    def render(self, markdown: str, context: RenderContext | None = None) -> RenderResult: ...


class MarkdownRenderer:
    """CommonMark renderer with tables and strikethrough enabled."""

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])

    def render(self, markdown: str, context: RenderContext | None = None) -> RenderResult:
        env: dict[str, object] = {}
        tokens = self._md.parse(markdown or "", env)
        if context is not None and context.resources:
            _rewrite_resource_links(tokens, context.resources)
        html = self._md.renderer.render(tokens, self._md.options, env)
        return RenderResult(html=html.strip())


def _resolve(target: str, resources: Mapping[str, str]) -> str:
    if not target.startswith(RESOURCE_LINK_PREFIX):
        return target
    resource_id = target[len(RESOURCE_LINK_PREFIX) :]
    published = resources.get(resource_id)
    if published is None:
        return target
    return f"{RESOURCE_URL_PREFIX}{published}"


def _rewrite_resource_links(tokens: Sequence[Token], resources: Mapping[str, str]) -> None:
    for token in tokens:
        for attr in ("href", "src"):
            value = token.attrGet(attr)
            if isinstance(value, str):
                token.attrSet(attr, _resolve(value, resources))
        if token.children:
            _rewrite_resource_links(token.children, resources)
