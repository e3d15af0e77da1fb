"""Shared Jinja2 template loading with per-theme override support."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    select_autoescape,
)

# Moment.js-style display tokens, longest first so YYYY wins over YY.
_DATE_TOKENS: dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda d: f"{d.year:04d}",
    "YY": lambda d: f"{d.year % 100:02d}",
    "MMMM": lambda d: d.strftime("%B"),
    "MMM": lambda d: d.strftime("%b"),
    "MM": lambda d: f"{d.month:02d}",
    "M": lambda d: str(d.month),
    "DD": lambda d: f"{d.day:02d}",
    "D": lambda d: str(d.day),
    "dddd": lambda d: d.strftime("%A"),
    "ddd": lambda d: d.strftime("%a"),
    "HH": lambda d: f"{d.hour:02d}",
    "H": lambda d: str(d.hour),
    "hh": lambda d: f"{(d.hour % 12) or 12:02d}",
    "h": lambda d: str((d.hour % 12) or 12),
    "mm": lambda d: f"{d.minute:02d}",
    "m": lambda d: str(d.minute),
    "ss": lambda d: f"{d.second:02d}",
    "s": lambda d: str(d.second),
    "A": lambda d: "AM" if d.hour < 12 else "PM",
    "a": lambda d: "am" if d.hour < 12 else "pm",
}
_DATE_TOKEN_RE = re.compile(r"\[([^\]]*)\]|" + "|".join(_DATE_TOKENS))


def format_date(value: datetime | str | None, fmt: str = "YYYY-MM-DD HH:mm") -> str:
    """Format *value* with moment-style tokens; ``[text]`` is kept literally."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)

    def replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _DATE_TOKENS[match.group(0)](value)

    return _DATE_TOKEN_RE.sub(replace, fmt)


def build_template_environment(template_dir: Path | None = None) -> Environment:
    """Build a Jinja2 environment with theme templates before packaged defaults.

    Packaged defaults (``notepress/templates/``) hold the RSS feed template;
    a theme may override it by shipping a template of the same name.
    """
    loaders: list[BaseLoader] = []
    if template_dir is not None:
        loaders.append(FileSystemLoader(str(template_dir)))
    loaders.append(PackageLoader("notepress", "templates"))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["date"] = format_date
    return env
