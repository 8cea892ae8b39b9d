"""Rich console output utilities for the floe-convert CLI.

Colored success/error/warning messages and JSON output, respecting the
NO_COLOR environment variable.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.table import Table

_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


# Default console instance
console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X.

    Example:
        >>> error("Cannot convert Iceberg tables with bucket partition")
        ✗ Cannot convert Iceberg tables with bucket partition
    """
    console.print(f"[red]✗[/red] {message}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message."""
    console.print(message, **kwargs)


def print_json(data: dict[str, Any], **kwargs: Any) -> None:
    """Print JSON data with syntax highlighting."""
    import json

    console.print_json(json.dumps(data), **kwargs)


def print_columns(title: str, rows: list[tuple[str, str, str, str]]) -> None:
    """Print a column table (name, type, physical name, column id)."""
    table = Table(title=title)
    table.add_column("Column")
    table.add_column("Type")
    table.add_column("Physical name")
    table.add_column("Id", justify="right")
    for row in rows:
        table.add_row(*row)
    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors."""
    global console
    console = create_console(no_color=no_color)
