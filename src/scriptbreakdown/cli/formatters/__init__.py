"""Output formatters for the breakdown CLI."""

from __future__ import annotations

from scriptbreakdown.cli.formatters.base import OutputFormat, OutputFormatter
from scriptbreakdown.cli.formatters.json_formatter import JsonFormatter

__all__ = ["JsonFormatter", "OutputFormat", "OutputFormatter"]
