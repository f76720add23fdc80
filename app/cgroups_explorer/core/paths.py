"""XDG-compliant path management for cgroups-explorer.

Only the configuration directory is used; the library persists no state.

XDG defaults:
- Config: ~/.config/cgroups-explorer/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "cgroups-explorer"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/cgroups-explorer/ (or XDG_CONFIG_HOME/cgroups-explorer/).
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/cgroups-explorer/explorer.toml.
    """
    return get_config_dir() / "explorer.toml"
