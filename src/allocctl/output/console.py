"""Rich Console factory and theme for allocctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

ALLOC_THEME = Theme(
    {
        "alloc.ok": "bold green",
        "alloc.error": "bold red",
        "alloc.warning": "bold yellow",
        "alloc.op": "bold cyan",
        "alloc.key": "dim",
        "alloc.id": "bold blue",
        "alloc.code": "bold",
        "alloc.amount": "magenta",
        "alloc.status.active": "green",
        "alloc.status.inactive": "yellow",
        "alloc.status.archived": "dim",
        "alloc.status.computed": "cyan",
        "alloc.status.posted": "green",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "active": "alloc.status.active",
    "inactive": "alloc.status.inactive",
    "archived": "alloc.status.archived",
    "computed": "alloc.status.computed",
    "posted": "alloc.status.posted",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=ALLOC_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a record or run status."""
    return _STATUS_STYLES.get(status, "")
