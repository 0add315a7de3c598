"""Rich Console factory and theme for devstack output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEVSTACK_THEME = Theme(
    {
        "ds.ok": "bold green",
        "ds.error": "bold red",
        "ds.warning": "bold yellow",
        "ds.op": "bold cyan",
        "ds.key": "dim",
        "ds.path": "dim",
        "ds.kind": "bold magenta",
        "ds.url": "bold",
        "ds.runtime.apple": "cyan",
        "ds.runtime.docker": "blue",
        "ds.runtime.external": "yellow",
    }
)

_RUNTIME_STYLES: dict[str, str] = {
    "apple": "ds.runtime.apple",
    "docker": "ds.runtime.docker",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DEVSTACK_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_runtime(runtime: str | None) -> str:
    """Rich style for an engine name; user-provided services have none."""
    if runtime is None:
        return "ds.runtime.external"
    return _RUNTIME_STYLES.get(runtime, "")
