"""Detect command implementation.

Reports the cgroup version and mount root found on the host.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from cgroups_explorer.core.detector import DEFAULT_MOUNTS_PATH, detect_layout
from cgroups_explorer.core.errors import DetectionError
from cgroups_explorer.utils.formatting import console, print_error

app = typer.Typer(
    help="Detect the cgroup version of the host.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def detect(
    mounts: Annotated[
        Path,
        typer.Option(
            "--mounts",
            help="Mount table to inspect.",
        ),
    ] = DEFAULT_MOUNTS_PATH,
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Detect and print the cgroup version and default mount root.

    Examples:
        cgexplore detect
        cgexplore detect --json
    """
    try:
        layout = detect_layout(mounts)
    except DetectionError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    if as_json:
        data = {
            "version": layout.version.value,
            "root": str(layout.root),
            "controllers": {name: str(path) for name, path in layout.controllers.items()},
        }
        console.print_json(json.dumps(data))
        return

    console.print(f"Cgroup version: [info]{layout.version.value}[/]")
    console.print(f"Mount root:     [info]{layout.root}[/]")
    if layout.controllers:
        console.print("\n[muted]Controllers:[/]")
        for name, path in sorted(layout.controllers.items()):
            console.print(f"  {name}: {path}")
