"""Config command implementation.

Shows and initializes the explorer configuration file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.syntax import Syntax

from cgroups_explorer.core.config import ExplorerConfig, dumps_config, load_config, save_config
from cgroups_explorer.core.errors import ConfigError, ConfigNotFoundError
from cgroups_explorer.core.paths import get_config_path
from cgroups_explorer.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the explorer configuration file.",
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Configuration file to read.",
        ),
    ] = None,
) -> None:
    """Print the effective configuration as TOML.

    Falls back to the built-in defaults when no file exists.
    """
    path = config_path or get_config_path()
    try:
        config = load_config(path)
        print_info(f"Configuration: {path}")
    except ConfigNotFoundError:
        config = ExplorerConfig()
        print_info(f"No configuration at {path}, showing defaults")
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    console.print(Syntax(dumps_config(config), "toml", background_color="default"))


@app.command()
def init(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Where to write the configuration file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a configuration file with default settings."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Configuration already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(ExplorerConfig(), path)
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    print_success(f"Configuration written to {saved}")
