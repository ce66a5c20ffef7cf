"""
Console output utilities for upkeep using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`upkeep.utils.logger`.

Guidelines:
- print_* functions: user-facing status messages
- print_table: structured output
- Logging should never go through this module
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.live import Live
from rich.table import Table
from rich.theme import Theme
from rich.console import Console, RenderableType

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

UPKEEP_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return a singleton Rich Console instance."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=UPKEEP_THEME,
                    no_color=not use_color,
                    highlight=False,
                )
    return _console


def reconfigure_console() -> None:
    """Reset the global console instance.

    Useful if environment variables (e.g. NO_COLOR) change at runtime.
    """
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    """Return the underlying Rich Console instance."""
    return _get_console()


def live_display(renderable: RenderableType) -> Live:
    """Return a transient, manually refreshed live display.

    The display is drawn on the shared console and erased when the
    ``with`` block exits; callers redraw with ``live.update(..., refresh=True)``.
    """
    return Live(renderable, console=_get_console(), auto_refresh=False, transient=True)


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    """Print a success message."""
    _get_console().print(f"{prefix} {message}", style="success", markup=False)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    """Print an error message."""
    _get_console().print(f"{prefix} {message}", style="error", markup=False)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    """Print a warning message."""
    _get_console().print(f"{prefix} {message}", style="warning", markup=False)


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def build_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> Table:
    """Build a Rich table from row dictionaries.

    Cell values are interpreted as Rich markup, so callers can pass
    pre-colorized labels straight through.

    Args:
        data: List of row dictionaries.
        headers: Column order. Defaults to keys of the first row.
        title: Optional table title.
        caption: Optional table caption.
        column_styles: Per-column style configuration.
        row_styler: Optional callback returning a row style.
    """
    if headers is None:
        headers = list(data[0].keys()) if data else []

    table = Table(
        title=title,
        caption=caption,
        show_header=True,
        header_style="bold",
    )

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "default"),
            no_wrap=config.get("no_wrap", False),
            width=config.get("width"),
            overflow=config.get("overflow", "fold"),
        )

    for row in data:
        values = [str(row.get(h, "")) for h in headers]
        style = row_styler(row) if row_styler else None
        table.add_row(*values, style=style)

    return table


def print_table(data: List[Dict[str, Any]], **kwargs: Any) -> None:
    """Render structured data as a Rich table.

    Accepts the same keyword arguments as :func:`build_table`. Nothing is
    printed for an empty ``data`` list.
    """
    if not data:
        return

    _get_console().print(build_table(data, **kwargs))


def colorize_update_type(update_type: str) -> str:
    """Return a Rich-markup colored update type label.

    Args:
        update_type: Update classification string.

    Returns:
        Rich markup string.
    """
    color_map = {
        "major": "red",
        "minor": "yellow",
        "patch": "green",
        "prerelease": "magenta",
        "update": "yellow",
    }

    color = color_map.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type
