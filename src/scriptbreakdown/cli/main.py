"""Main CLI entry point for the breakdown tool."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptbreakdown import __version__
from scriptbreakdown.cli.commands import (
    export_all_command,
    export_command,
    html_command,
    length_command,
    parse_command,
    serialize_command,
    stats_command,
)
from scriptbreakdown.cli.formatters.json_formatter import JsonFormatter
from scriptbreakdown.cli.utils.cli_handler import CLIHandler
from scriptbreakdown.config import (
    clear_settings_cache,
    configure_logging,
    get_logger,
    get_settings,
    get_settings_for_cli,
    set_settings,
)

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="breakdown",
    help="Screenplay parsing, page lengths and VFX shot breakdowns",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="parse")(parse_command)
app.command(name="stats")(stats_command)
app.command(name="export")(export_command)
app.command(name="export-all")(export_all_command)
app.command(name="serialize")(serialize_command)
app.command(name="html")(html_command)
app.command(name="length")(length_command)


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show the breakdown tool version."""
    version_info = {
        "name": "scriptbreakdown",
        "version": __version__,
    }

    if json_output:
        print(JsonFormatter().format(version_info))
    else:
        console.print(f"scriptbreakdown v{__version__}")


@app.callback()
def main_callback(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (YAML, TOML or JSON)",
            envvar="BREAKDOWN_CONFIG",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging", envvar="BREAKDOWN_DEBUG"),
    ] = False,
) -> None:
    """Configure global options."""
    if debug:
        os.environ["BREAKDOWN_LOG_LEVEL"] = "DEBUG"
        os.environ["BREAKDOWN_DEBUG"] = "true"
    elif verbose:
        os.environ["BREAKDOWN_LOG_LEVEL"] = "INFO"

    if debug or verbose:
        clear_settings_cache()
        configure_logging(get_settings())
        if debug:
            logger.debug("Debug mode enabled")
        else:
            logger.info("Verbose mode enabled")

    if config:
        try:
            settings = get_settings_for_cli(config)
        except Exception as e:
            CLIHandler(console).handle_error(e)
        set_settings(settings)
        configure_logging(settings)
        logger.debug("Loaded configuration", path=str(config))


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
