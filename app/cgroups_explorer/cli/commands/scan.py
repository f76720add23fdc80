"""Scan command implementation.

Lists the cgroups matching include/exclude patterns.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from cgroups_explorer.core.config import ExplorerConfig, load_config
from cgroups_explorer.core.errors import (
    BuildError,
    CgroupsExplorerError,
    ConfigError,
    DetectionError,
)
from cgroups_explorer.core.explorer import ExplorerBuilder
from cgroups_explorer.core.models import Cgroup
from cgroups_explorer.core.paths import get_config_path
from cgroups_explorer.core.patterns import PatternSyntax
from cgroups_explorer.utils.formatting import (
    console,
    create_cgroup_table,
    format_cgroup_row,
    format_issue,
    print_error,
    print_info,
    print_warning,
)

app = typer.Typer(
    help="List cgroups matching include/exclude patterns.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    PLAIN = "plain"


class VersionChoice(str, Enum):
    """Cgroup version selection for the CLI."""

    AUTO = "auto"
    V1 = "v1"
    V2 = "v2"


def _load_base_config(config_path: Path | None) -> ExplorerConfig:
    """Load the explicit config file, the default one if present, or defaults."""
    if config_path is not None:
        return load_config(config_path)
    default_path = get_config_path()
    if default_path.exists():
        return load_config(default_path)
    return ExplorerConfig()


def _make_builder(
    config: ExplorerConfig,
    *,
    version: VersionChoice | None,
    root: Path | None,
    regex: bool,
    include: list[str],
    exclude: list[str],
    no_prune: bool,
) -> ExplorerBuilder:
    """Merge command line options over the configuration file."""
    updates: dict[str, object] = {}
    if version is not None:
        updates["version"] = version.value
    if root is not None:
        updates["root"] = root.absolute()
    if regex:
        updates["syntax"] = PatternSyntax.REGEX.value
    if include:
        updates["include"] = [*config.include, *include]
    if exclude:
        updates["exclude"] = [*config.exclude, *exclude]
    if no_prune:
        updates["prune_excluded"] = False

    merged = ExplorerConfig.model_validate({**config.model_dump(), **updates})
    return ExplorerBuilder.from_config(merged)


@app.callback(invoke_without_command=True)
def scan_cgroups(
    ctx: typer.Context,
    include: Annotated[
        list[str] | None,
        typer.Option(
            "--include",
            "-i",
            help="Include pattern (repeatable). Default: every cgroup.",
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-x",
            help="Exclude pattern (repeatable). Excludes win over includes.",
        ),
    ] = None,
    regex: Annotated[
        bool,
        typer.Option(
            "--regex",
            "-r",
            help="Interpret patterns as regular expressions instead of globs.",
        ),
    ] = False,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            help="Mount root to scan instead of the detected one.",
        ),
    ] = None,
    version: Annotated[
        VersionChoice | None,
        typer.Option(
            "--cgroup-version",
            "-c",
            help="Cgroup version: auto, v1 or v2.",
            case_sensitive=False,
        ),
    ] = None,
    no_prune: Annotated[
        bool,
        typer.Option(
            "--no-prune",
            help="Visit the subtrees of excluded cgroups (same results, slower).",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Configuration file to load.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json or plain.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Stop after this many cgroups.",
        ),
    ] = None,
) -> None:
    """Scan the cgroup hierarchy and list matching cgroups.

    Examples:
        cgexplore scan                              # Every cgroup
        cgexplore scan -i 'user.slice/*'            # Direct children of user.slice
        cgexplore scan -i '**' -x '*/cron.*'        # Everything but cron services
        cgexplore scan -r -i '^system\\.slice/.*\\.service$'
        cgexplore scan -c v1 --root /sys/fs/cgroup/memory
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))

    try:
        config = _load_base_config(config_path)
        builder = _make_builder(
            config,
            version=version,
            root=root,
            regex=regex,
            include=include or [],
            exclude=exclude or [],
            no_prune=no_prune,
        )
        explorer = builder.build()
    except (ConfigError, DetectionError, BuildError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e
    except ValueError as e:
        print_error(escape(f"Invalid options: {e}"))
        raise typer.Exit(code=1) from e

    iterator = explorer.iter_cgroups()
    cgroups: list[Cgroup] = []
    try:
        for cgroup in iterator:
            cgroups.append(cgroup)
            if limit is not None and len(cgroups) >= limit:
                break
    except (CgroupsExplorerError, OSError, ValueError) as e:
        print_error(escape(f"Scan of {explorer.root} failed: {e}"))
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        data = {
            "version": explorer.version.value,
            "root": str(explorer.root),
            "cgroups": [c.to_dict() for c in cgroups],
            "issues": [i.to_dict() for i in iterator.issues],
        }
        console.print_json(json.dumps(data))
        return

    if output_format == OutputFormat.PLAIN:
        for cgroup in cgroups:
            typer.echo(cgroup.relative_path)
    else:
        title = f"Cgroups ({explorer.version.value}, {explorer.root})"
        table = create_cgroup_table(title)
        for cgroup in cgroups:
            table.add_row(*format_cgroup_row(cgroup))
        console.print(table)
        if not quiet:
            print_info(f"Found {len(cgroups)} cgroups")

    if not quiet:
        for issue in iterator.issues:
            print_warning(format_issue(issue))

