"""Rich Console factory and theme for notepress output.

Result renderers write to a StringIO-backed Console so formatting stays a
``ServiceResult -> str`` function. Progress for long-running git work is
drawn on a separate stderr Console.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

NP_THEME = Theme(
    {
        "np.ok": "bold green",
        "np.error": "bold red",
        "np.warning": "bold yellow",
        "np.op": "bold cyan",
        "np.key": "dim",
        "np.id": "bold blue",
        "np.url": "underline blue",
        "np.path": "dim",
        "np.title": "bold",
        "np.published": "green",
        "np.draft": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=NP_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def create_progress_console() -> Console:
    """Console bound to stderr for progress bars and transient messages."""
    return Console(stderr=True, theme=NP_THEME, highlight=False)


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
