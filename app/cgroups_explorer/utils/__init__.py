"""Utility modules for cgroups-explorer.

This module exports commonly used console helpers.
"""

from cgroups_explorer.utils.formatting import (
    console,
    create_cgroup_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_cgroup_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
