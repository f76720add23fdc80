"""CLI package for cgroups-explorer.

This package contains the Typer application and all subcommands.
"""

from cgroups_explorer.cli.main import app

__all__ = ["app"]
