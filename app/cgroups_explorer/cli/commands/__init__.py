"""CLI commands for cgroups-explorer.

This package contains all subcommand implementations.
"""

from cgroups_explorer.cli.commands import config, detect, scan

__all__ = ["config", "detect", "scan"]
