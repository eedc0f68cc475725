"""Page and scene statistics command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from scriptbreakdown.cli.formatters.json_formatter import JsonFormatter
from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.cli.utils.loading import load_for_cli
from scriptbreakdown.config import get_logger
from scriptbreakdown.export import ExportRowGenerator
from scriptbreakdown.metrics import calculate_line_counts

logger = get_logger(__name__)
console = Console()


def _scene_summaries(rows: list[dict[str, Any]], shot_columns: list[str]) -> list[dict[str, Any]]:
    summaries = []
    for row in rows:
        if row["description"] or row["text"]:
            continue
        summary = {
            "scene": row["scene"],
            "page": row["page"],
            "heading": row["sceneDescr"],
            "length": row["length"],
            "lengthDec": row["lengthDec"],
        }
        summary.update({column: row[column] for column in shot_columns})
        summaries.append(summary)
    return summaries


def stats_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text or editor HTML")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Output statistics as JSON")
    ] = False,
) -> None:
    """Show per-page line counts and per-scene lengths and shot estimates.

    Examples:
        breakdown stats pilot.txt
    """
    handler = CLIHandler(console)

    try:
        result, settings = load_for_cli(script)
        counts = calculate_line_counts(result.tokens)
        generator = ExportRowGenerator(settings.vfx_level_ids, settings.shots_per_page)
        shot_headers = [
            header
            for header in generator.headers(result.entities)
            if header.id.startswith("shotCount")
        ]
        rows = generator.generate(result.tokens, result.entities, full=False)
        scenes = _scene_summaries(rows, [header.id for header in shot_headers])

        if json_output:
            print(
                JsonFormatter().format(
                    {
                        "pages": {str(page): lines for page, lines in counts.pages.items()},
                        "scenes": scenes,
                        "total": counts.total,
                    }
                )
            )
            return

        page_table = Table(title=f"Pages in {script.name}")
        page_table.add_column("Page", justify="right", style="cyan")
        page_table.add_column("Lines", justify="right")
        for page, lines in counts.pages.items():
            page_table.add_row(str(page), str(lines))
        console.print(page_table)

        scene_table = Table(title="Scenes")
        scene_table.add_column("Scene", style="cyan")
        scene_table.add_column("Page", justify="right")
        scene_table.add_column("Heading", style="green")
        scene_table.add_column("Length", justify="right")
        for header in shot_headers:
            scene_table.add_column(header.title, justify="right")
        for scene in scenes:
            scene_table.add_row(
                scene["scene"],
                str(scene["page"]),
                scene["heading"],
                scene["length"],
                *(str(scene[header.id]) for header in shot_headers),
            )
        console.print(scene_table)
        console.print(f"\n[dim]Total lines: {counts.total}[/dim]")

    except Exception as e:
        handler.handle_error(e, json_output)
