"""Explorer configuration file I/O.

Configuration is stored as TOML and validated with Pydantic:

    version = "auto"            # auto, v1 or v2
    root = "/sys/fs/cgroup"     # optional mount root override
    syntax = "glob"             # glob or regex
    include = ["user.slice/*"]
    exclude = ["*/cron.*"]
    prune_excluded = true
    sort = true
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cgroups_explorer.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError
from cgroups_explorer.core.paths import get_config_path


class ExplorerConfig(BaseModel):
    """Settings used to build an Explorer.

    Attributes:
        version: "auto" to detect the host version, or "v1"/"v2".
        root: Mount root override (absolute path), None for the default.
        syntax: Pattern syntax shared by all patterns.
        include: Include patterns (empty means everything).
        exclude: Exclude patterns.
        prune_excluded: Skip subtrees of excluded cgroups during traversal.
        sort: Visit sibling cgroups in lexicographic order.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[
        Literal["auto", "v1", "v2"],
        Field(description="Cgroup version, or auto to detect"),
    ] = "auto"
    root: Annotated[Path | None, Field(description="Mount root override")] = None
    syntax: Annotated[Literal["glob", "regex"], Field(description="Pattern syntax")] = "glob"
    include: Annotated[list[str], Field(default_factory=list, description="Include patterns")]
    exclude: Annotated[list[str], Field(default_factory=list, description="Exclude patterns")]
    prune_excluded: Annotated[bool, Field(description="Prune excluded subtrees")] = True
    sort: Annotated[bool, Field(description="Sort sibling cgroups")] = True

    @field_validator("include", "exclude")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        """Reject empty pattern strings."""
        for pattern in v:
            if not pattern.strip():
                msg = "Patterns cannot be empty"
                raise ValueError(msg)
        return v

    @field_validator("root")
    @classmethod
    def validate_root(cls, v: Path | None) -> Path | None:
        """Require an absolute mount root."""
        if v is not None and not v.is_absolute():
            msg = f"Root must be an absolute path, got {v}"
            raise ValueError(msg)
        return v


def load_config(path: Path | None = None) -> ExplorerConfig:
    """Load and validate an explorer configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated ExplorerConfig.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content is invalid.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ExplorerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def _config_to_dict(config: ExplorerConfig) -> dict[str, Any]:
    """Convert a config to TOML-serializable data (TOML has no null)."""
    data = config.model_dump(mode="json")
    if data.get("root") is None:
        data.pop("root", None)
    return data


def dumps_config(config: ExplorerConfig) -> str:
    """Render a config as TOML text."""
    return tomli_w.dumps(_config_to_dict(config))


def save_config(config: ExplorerConfig, path: Path | None = None) -> Path:
    """Save an explorer configuration to a TOML file.

    The file is written to a temporary file in the same directory first
    and then moved into place with os.replace().

    Args:
        config: Configuration to save.
        path: Destination. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(_config_to_dict(config), f)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
