"""Rich-document form of parsed screenplays."""

from __future__ import annotations

from .converter import (
    document_to_tokens,
    document_to_tokens_async,
    tokens_to_document,
    tokens_to_document_async,
)
from .html import document_to_html, html_to_document
from .models import Block, BlockKind, Document, InlineSpan, SpanKind

__all__ = [
    "Block",
    "BlockKind",
    "Document",
    "InlineSpan",
    "SpanKind",
    "document_to_html",
    "document_to_tokens",
    "document_to_tokens_async",
    "html_to_document",
    "tokens_to_document",
    "tokens_to_document_async",
]
