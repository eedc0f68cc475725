"""scriptbreakdown: screenplay parsing and VFX breakdown.

Parses loosely formatted screenplay text into a token stream, tracks the
characters, props, environments and effects it mentions, and turns the
result into page lengths, shot estimates and breakdown tables.
"""

from .config import BreakdownSettings, get_logger, get_settings
from .document import Document, document_to_tokens, tokens_to_document
from .exceptions import BreakdownError
from .export import ExportRowGenerator, export_all, tokens_to_raw, write_breakdown
from .metrics import calculate_line_counts, fractional_page_count
from .parser import EntityRegistry, ParseResult, ScriptParser, parse_script
from .sources import load_script

__version__ = "0.1.0"

__all__ = [
    "BreakdownError",
    "BreakdownSettings",
    "Document",
    "EntityRegistry",
    "ExportRowGenerator",
    "ParseResult",
    "ScriptParser",
    "__version__",
    "calculate_line_counts",
    "document_to_tokens",
    "export_all",
    "fractional_page_count",
    "get_logger",
    "get_settings",
    "load_script",
    "parse_script",
    "tokens_to_document",
    "tokens_to_raw",
    "write_breakdown",
]
