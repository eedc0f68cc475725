"""Breakdown export: tabular rows, raw text and bundles."""

from __future__ import annotations

from .bundle import ExportBundle, export_all
from .rows import (
    ExportRowGenerator,
    HeaderDescriptor,
    build_headers,
    profile_scenes,
)
from .serializer import RawSerializer, tokens_to_raw, write_tokens
from .writers import write_breakdown, write_rows

__all__ = [
    "ExportBundle",
    "ExportRowGenerator",
    "HeaderDescriptor",
    "RawSerializer",
    "build_headers",
    "export_all",
    "profile_scenes",
    "tokens_to_raw",
    "write_breakdown",
    "write_rows",
    "write_tokens",
]
