"""Page aggregate — built-in, predefined and theme fields merged with values.

A page's field list is always::

    [url field unless index] + PREDEFINED_FIELDS[name] + theme.pages[name]

Markdown-typed values are persisted with a ``markdown://`` prefix and held
decoded in ``field_vars``. Only :meth:`Page.output_values` is persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from notepress.domain.fields import URL_PATH_PATTERN, Field, FieldRule, InputType, validate_values

if TYPE_CHECKING:
    from notepress.domain.theme import Theme

logger = logging.getLogger(__name__)

MARKDOWN_CONTENT_PREFIX = "markdown://"

# Pages with these names are handled specially.
INDEX_PAGE_NAME = "index"
ARTICLE_PAGE_NAME = "article"

DEFAULT_DATE_FORMAT = "YYYY-MM-DD HH:mm"
URL_RULE_MESSAGE = "Url must be a relative path without empty, '.' or '..' segments"

PREDEFINED_FIELDS: dict[str, list[Field]] = {
    ARTICLE_PAGE_NAME: [
        Field(
            name="dateFormat",
            label="Date Format",
            default_value=DEFAULT_DATE_FORMAT,
            placeholder=f"Default value is {DEFAULT_DATE_FORMAT}.",
            tip="Tokens: YYYY, YY, MM, M, DD, D, HH, H, mm, ss.",
        ),
    ],
}


def encode_markdown(value: Any) -> Any:
    """Add the markdown content prefix to strings; other values pass through."""
    if isinstance(value, str):
        return f"{MARKDOWN_CONTENT_PREFIX}{value}"
    return value


def decode_markdown(value: Any) -> Any:
    """Strip one leading markdown content prefix; other values pass through."""
    if isinstance(value, str) and value.startswith(MARKDOWN_CONTENT_PREFIX):
        return value[len(MARKDOWN_CONTENT_PREFIX) :]
    return value


def markdown_field_names(fields: list[Field]) -> list[str]:
    return [field.name for field in fields if field.input_type == InputType.MARKDOWN]


def build_fields(name: str, theme: Theme) -> list[Field]:
    """Merge built-in, predefined and theme fields for page *name*.

    Names must be unique. When a theme redeclares a built-in or predefined
    field, the built-in one wins and the theme field is dropped.
    """
    fields: list[Field] = []
    if name != INDEX_PAGE_NAME:
        fields.append(
            Field(
                name="url",
                label="Url",
                placeholder=f"Default value is {name}",
                rules=[FieldRule(pattern=URL_PATH_PATTERN, message=URL_RULE_MESSAGE)],
            )
        )
    fields.extend(PREDEFINED_FIELDS.get(name, []))

    taken = {field.name for field in fields}
    for field in theme.pages.get(name, []):
        if field.name in taken:
            logger.warning(
                "Theme %s redeclares field %r on page %r; keeping the built-in field",
                theme.name,
                field.name,
                name,
            )
            continue
        taken.add(field.name)
        fields.append(field)
    return fields


class Page:
    """A named, field-driven unit of site content.

    Never raises on malformed persisted values. Keys with no matching field
    are retained in ``field_vars`` (set but not displayed).
    """

    def __init__(self, name: str, field_vars: Mapping[str, Any] | None, theme: Theme) -> None:
        self.name = name
        self.theme_name = theme.name
        self.fields = build_fields(name, theme)
        self.field_vars: dict[str, Any] = {field.name: field.default_value for field in self.fields}
        if field_vars is None:
            return
        if not isinstance(field_vars, Mapping):
            logger.warning("Ignoring malformed values for page %r: %r", name, field_vars)
            return
        self.set_values(field_vars)

    @property
    def is_index_page(self) -> bool:
        return self.name == INDEX_PAGE_NAME

    @property
    def is_article_page(self) -> bool:
        return self.name == ARTICLE_PAGE_NAME

    @property
    def markdown_field_names(self) -> list[str]:
        return markdown_field_names(self.fields)

    @property
    def url(self) -> str:
        if self.is_index_page:
            return "/"
        return f"/{self.field_vars.get('url') or self.name}"

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Merge *values* into ``field_vars``, decoding markdown fields."""
        markdown_names = self.markdown_field_names
        for key, value in values.items():
            self.field_vars[key] = decode_markdown(value) if key in markdown_names else value

    def output_values(self) -> dict[str, Any]:
        """Persistable projection of ``field_vars`` (markdown re-prefixed)."""
        markdown_names = self.markdown_field_names
        return {
            key: encode_markdown(value) if key in markdown_names else value
            for key, value in self.field_vars.items()
        }

    def validate(self) -> dict[str, list[str]]:
        """Run every field rule against the current values."""
        return validate_values(self.fields, self.field_vars)

    def __repr__(self) -> str:
        return f"Page(name={self.name!r}, theme={self.theme_name!r})"
