"""Parse command for the breakdown CLI."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from scriptbreakdown.cli.formatters.json_formatter import JsonFormatter
from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.cli.utils.loading import load_for_cli
from scriptbreakdown.config import get_logger

logger = get_logger(__name__)
console = Console()


def parse_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text or editor HTML")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Output tokens and entities as JSON")
    ] = False,
) -> None:
    """Parse a screenplay into tokens and list its entities.

    Examples:
        breakdown parse pilot.txt
        breakdown parse pilot.txt --json
    """
    handler = CLIHandler(console)

    try:
        result, _ = load_for_cli(script)

        if json_output:
            print(JsonFormatter().format(result))
            return

        counts = Counter(token.type.value for token in result.tokens)
        token_table = Table(title=f"Tokens in {script.name}")
        token_table.add_column("Type", style="cyan")
        token_table.add_column("Count", justify="right")
        for token_type, count in sorted(counts.items()):
            token_table.add_row(token_type, str(count))
        console.print(token_table)

        if len(result.entities):
            entity_table = Table(title="Entities")
            entity_table.add_column("Name", style="green")
            entity_table.add_column("Type", style="cyan")
            entity_table.add_column("Count", justify="right")
            for entity in result.entities.sorted():
                entity_table.add_row(entity.name, entity.type.value, str(entity.count))
            console.print(entity_table)
        else:
            console.print("[yellow]No entities found.[/yellow]")

    except Exception as e:
        handler.handle_error(e, json_output)
