"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from cgroups_explorer.core.models import Cgroup, TraversalIssue

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "cgroup": "#69B9A1",
    }
)


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich auto-detect."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_cgroup_table(title: str = "Cgroups") -> Table:
    """Create a pre-configured table for displaying cgroups.

    Args:
        title: Table title.

    Returns:
        Rich Table with cgroup and path columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Cgroup", style="cgroup", no_wrap=True)
    table.add_column("Depth", style="muted", justify="right")
    table.add_column("Path", style="text", overflow="fold")
    return table


def format_cgroup_row(cgroup: Cgroup) -> tuple[str, str, str]:
    """Format a cgroup as a table row.

    Returns:
        Tuple of (relative path, depth, absolute path).
    """
    return (cgroup.relative_path, str(cgroup.depth), str(cgroup.path))


def format_issue(issue: TraversalIssue) -> str:
    """Format a traversal issue as a one-line message."""
    return escape(f"{issue.path}: {issue.kind.value.replace('_', ' ')} ({issue.message})")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
