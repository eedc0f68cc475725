"""CLI commands for the breakdown tool."""

from .convert import html_command, serialize_command
from .export import export_all_command, export_command
from .length import length_command
from .parse import parse_command
from .stats import stats_command

__all__ = [
    "export_all_command",
    "export_command",
    "html_command",
    "length_command",
    "parse_command",
    "serialize_command",
    "stats_command",
]
