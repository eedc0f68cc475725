"""Script sources: text files, editor HTML files and OCR page output."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from scriptbreakdown.config import get_logger
from scriptbreakdown.document.converter import (
    DEFAULT_CONVERSION_TIMEOUT,
    document_to_tokens_async,
)
from scriptbreakdown.document.html import html_to_document
from scriptbreakdown.exceptions import InvalidInputError, ScriptFileNotFoundError
from scriptbreakdown.parser.patterns import DEFAULT_VFX_LEVELS, OCR_PAGE_SEPARATOR
from scriptbreakdown.parser.script_parser import ParseResult, ScriptParser

logger = get_logger(__name__)

HTML_SUFFIXES = (".html", ".htm")


def read_script(path: Path | str) -> str:
    """Read a script file as UTF-8 text.

    Raises:
        ScriptFileNotFoundError: If the file does not exist
        InvalidInputError: If the file is not valid UTF-8
    """
    path = Path(path)
    if not path.is_file():
        raise ScriptFileNotFoundError(
            message=f"Script file not found: {path}",
            hint="Check the path, or run from the directory containing the script",
            details={"path": str(path.absolute())},
        )
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInputError(
            message=f"Script is not UTF-8 text: {path}",
            hint="Re-save the file as UTF-8, or import the PDF through OCR",
            details={"path": str(path), "position": e.start},
        ) from e


def join_ocr_pages(pages: Iterable[str]) -> str:
    """Join per-page OCR output into one script.

    Pages are separated by the sentinel rule, which the parser reads as a
    page break.
    """
    return f"\n{OCR_PAGE_SEPARATOR}\n".join(page.strip("\n") for page in pages)


def load_script(
    path: Path | str,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    indent_threshold: int = 4,
    timeout: float | None = DEFAULT_CONVERSION_TIMEOUT,
) -> ParseResult:
    """Load tokens from a text script or an editor HTML document.

    Editor documents are converted in a worker thread bounded by
    ``timeout`` seconds. Call this from synchronous code only.

    Raises:
        ScriptFileNotFoundError: If the file does not exist
        InvalidInputError: If the file is not UTF-8 or holds no script
        ConversionTimeoutError: If converting an editor document exceeds
            ``timeout``
    """
    path = Path(path)
    content = read_script(path)
    levels = tuple(levels)
    if path.suffix.lower() in HTML_SUFFIXES:
        logger.debug("Loading editor document", path=str(path))
        document = html_to_document(content, levels)
        return asyncio.run(
            document_to_tokens_async(document, levels, timeout=timeout)
        )
    logger.debug("Parsing script text", path=str(path))
    return ScriptParser(levels, indent_threshold).parse(content)
