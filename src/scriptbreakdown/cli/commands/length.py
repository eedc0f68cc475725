"""Fractional page length calculator command."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from scriptbreakdown.cli.formatters.json_formatter import JsonFormatter
from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.metrics import fractional_page_count

console = Console()


def length_command(
    lines: Annotated[float, typer.Argument(help="Lines in the span")],
    lines_per_page: Annotated[float, typer.Argument(help="Lines on the page")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Express a line count as an eighths-style page length.

    Examples:
        breakdown length 10 40      # 1/4
        breakdown length 55 40      # 1 3/8
    """
    handler = CLIHandler(console)

    try:
        length = fractional_page_count(lines, lines_per_page, strict=True)
    except Exception as e:
        handler.handle_error(e, json_output)

    if json_output:
        print(
            JsonFormatter().format(
                {
                    "display": length.display,
                    "decimal": length.decimal,
                    "lines": length.lines,
                }
            )
        )
    else:
        console.print(f"{length.display} [dim]({length.decimal:g} pages)[/dim]")
