"""Breakdown export commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.cli.utils.loading import load_for_cli
from scriptbreakdown.config import get_logger
from scriptbreakdown.export import export_all, write_breakdown

logger = get_logger(__name__)
console = Console()


def export_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text or editor HTML")],
    output: Annotated[Path, typer.Argument(help="Output file (.csv or .xlsx)")],
    vfx_only: Annotated[
        bool,
        typer.Option("--vfx-only", help="Only emit rows for VFX-tagged blocks"),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Write the scene and shot breakdown table.

    Examples:
        breakdown export pilot.txt breakdown.csv
        breakdown export pilot.txt vfx.xlsx --vfx-only
    """
    handler = CLIHandler(console)

    try:
        result, settings = load_for_cli(script)
        path = write_breakdown(
            result.tokens,
            result.entities,
            output,
            full=not vfx_only,
            levels=settings.vfx_level_ids,
            shots_per_page=settings.shots_per_page,
        )
        handler.handle_success(
            f"Breakdown written to {path}", {"path": str(path)}, json_output
        )
    except Exception as e:
        handler.handle_error(e, json_output)


def export_all_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text or editor HTML")],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Base file name (defaults to the script name)"),
    ] = None,
    export_dir: Annotated[
        Path | None,
        typer.Option("--dir", "-d", help="Export directory (defaults to settings)"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Write the full and VFX breakdowns, annotated text and HTML together.

    Examples:
        breakdown export-all pilot.txt --dir exports/
    """
    handler = CLIHandler(console)

    try:
        result, settings = load_for_cli(script)
        bundle = export_all(
            result.tokens,
            result.entities,
            name or script.stem,
            export_dir or settings.export_dir,
            levels=settings.vfx_level_ids,
            shots_per_page=settings.shots_per_page,
            group_size=settings.entity_group_size,
        )
        paths = [str(path) for path in bundle.paths()]
        if json_output:
            handler.handle_success("Export complete", {"paths": paths}, json_output)
        else:
            console.print("[green]Export complete[/green]")
            for path in paths:
                console.print(f"  {path}")
    except Exception as e:
        handler.handle_error(e, json_output)
