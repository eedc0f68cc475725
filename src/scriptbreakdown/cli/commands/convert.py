"""Conversion commands between text, tokens and editor HTML."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.cli.utils.loading import load_for_cli
from scriptbreakdown.config import get_logger
from scriptbreakdown.document import document_to_html, tokens_to_document_async
from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.export import write_tokens

logger = get_logger(__name__)
console = Console()


def serialize_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text or editor HTML")],
    output: Annotated[Path, typer.Argument(help="Output text file")],
    clean: Annotated[
        bool,
        typer.Option(
            "--clean",
            help="Drop entity declarations and VFX markers",
        ),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Write tokens back out as formatted screenplay text.

    Examples:
        breakdown serialize pilot.html pilot.txt
        breakdown serialize pilot.txt plain.txt --clean
    """
    handler = CLIHandler(console)

    try:
        result, settings = load_for_cli(script)
        path = write_tokens(
            result.tokens,
            result.entities,
            output,
            clean=clean,
            group_size=settings.entity_group_size,
        )
        handler.handle_success(
            f"Script written to {path}", {"path": str(path)}, json_output
        )
    except Exception as e:
        handler.handle_error(e, json_output)


def html_command(
    script: Annotated[Path, typer.Argument(help="Screenplay text")],
    output: Annotated[Path, typer.Argument(help="Output HTML file")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Convert a screenplay into an editor HTML document.

    Examples:
        breakdown html pilot.txt pilot.html
    """
    handler = CLIHandler(console)

    try:
        result, settings = load_for_cli(script)
        document = asyncio.run(
            tokens_to_document_async(
                result.tokens,
                result.entities,
                settings.vfx_level_ids,
                timeout=settings.conversion_timeout,
            )
        )
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(document_to_html(document), encoding="utf-8")
        except OSError as e:
            raise ExportError(
                message=f"Failed to write HTML document: {output}",
                hint="Check that the directory exists and is writable",
                details={"path": str(output), "error": str(e)},
            ) from e
        logger.info("Wrote HTML document", path=str(output), blocks=len(document.blocks))
        handler.handle_success(
            f"Document written to {output}", {"path": str(output)}, json_output
        )
    except Exception as e:
        handler.handle_error(e, json_output)
