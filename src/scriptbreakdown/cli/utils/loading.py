"""Shared script loading for CLI commands."""

from __future__ import annotations

from pathlib import Path

from scriptbreakdown.config import BreakdownSettings, get_settings
from scriptbreakdown.parser import ParseResult
from scriptbreakdown.sources import load_script


def load_for_cli(
    script: Path, settings: BreakdownSettings | None = None
) -> tuple[ParseResult, BreakdownSettings]:
    """Load a script with the active settings.

    Args:
        script: Text script or editor HTML document
        settings: Settings to use, defaults to the global settings

    Returns:
        The parse result and the settings it was produced with
    """
    settings = settings or get_settings()
    result = load_script(
        script,
        settings.vfx_level_ids,
        settings.indent_threshold,
        timeout=settings.conversion_timeout,
    )
    return result, settings
