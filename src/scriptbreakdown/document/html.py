"""HTML form of the block document.

The editor stores documents as a flat run of paragraphs::

    <p class="scene-heading vfx hard" data-scene-number="12"
       data-page-number="3" data-collapsed="false" data-setting="INT.">
      HOUSE - DAY</p>
    <p class="action">A <mark class="prop" data-entity="lamp">LAMP</mark> flickers.
      <span data-type="note" class="note-bubble">check wiring</span></p>
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag

from scriptbreakdown.config import get_logger
from scriptbreakdown.document.models import (
    ATTR_CHARACTER,
    ATTR_COLLAPSED,
    ATTR_DUAL,
    ATTR_PAGE_NUMBER,
    ATTR_SCENE_NUMBER,
    ATTR_SETTING,
    ATTR_SHOT_NUMBER,
    ATTR_VFX_LEVEL,
    Block,
    BlockKind,
    Document,
    InlineSpan,
    SpanKind,
)
from scriptbreakdown.exceptions import InvalidInputError
from scriptbreakdown.parser.patterns import DEFAULT_VFX_LEVELS

logger = get_logger(__name__)

# Block attribute -> HTML data attribute
_DATA_ATTRS = {
    ATTR_SCENE_NUMBER: "data-scene-number",
    ATTR_PAGE_NUMBER: "data-page-number",
    ATTR_COLLAPSED: "data-collapsed",
    ATTR_SETTING: "data-setting",
    ATTR_SHOT_NUMBER: "data-shot-number",
    ATTR_CHARACTER: "data-character",
    ATTR_DUAL: "data-dual",
}
_BOOL_ATTRS = {ATTR_COLLAPSED, ATTR_DUAL}
_BLOCK_KINDS = {kind.value: kind for kind in BlockKind}
_VFX_CLASS = "vfx"
_NOTE_CLASS = "note-bubble"


def document_to_html(document: Document) -> str:
    """Render a document as editor HTML."""
    soup = BeautifulSoup("", "html.parser")
    for block in document.blocks:
        paragraph = soup.new_tag("p")
        classes = [block.kind.value]
        level = block.attrs.get(ATTR_VFX_LEVEL)
        if level:
            classes.extend([_VFX_CLASS, str(level)])
        paragraph["class"] = classes

        for key, data_attr in _DATA_ATTRS.items():
            if key not in block.attrs or block.attrs[key] is None:
                continue
            value = block.attrs[key]
            if key in _BOOL_ATTRS:
                paragraph[data_attr] = "true" if value else "false"
            else:
                paragraph[data_attr] = str(value)

        for span in block.spans:
            if span.kind is SpanKind.MARK:
                mark = soup.new_tag("mark")
                mark["class"] = [span.category or "char"]
                if span.entity:
                    mark["data-entity"] = span.entity
                mark.string = span.text
                paragraph.append(mark)
            elif span.kind is SpanKind.NOTE:
                note = soup.new_tag("span")
                note["data-type"] = "note"
                note["class"] = [_NOTE_CLASS]
                note.string = span.text
                paragraph.append(note)
            else:
                paragraph.append(NavigableString(span.text))
        soup.append(paragraph)
        soup.append(NavigableString("\n"))
    return soup.decode()


def _spans(paragraph: Tag) -> list[InlineSpan]:
    spans: list[InlineSpan] = []
    for child in paragraph.children:
        if isinstance(child, NavigableString):
            if str(child):
                spans.append(InlineSpan(SpanKind.TEXT, str(child)))
        elif isinstance(child, Tag):
            classes = child.get("class") or []
            if child.name == "mark":
                category = classes[0] if classes else "char"
                entity = child.get("data-entity")
                spans.append(
                    InlineSpan(
                        SpanKind.MARK,
                        child.get_text(),
                        category,
                        str(entity) if entity else None,
                    )
                )
            elif child.get("data-type") == "note" or _NOTE_CLASS in classes:
                spans.append(InlineSpan(SpanKind.NOTE, child.get_text()))
            elif child.name == "br":
                continue
            else:
                spans.append(InlineSpan(SpanKind.TEXT, child.get_text()))
    return spans


def _attrs(paragraph: Tag, classes: list[str], levels: tuple[str, ...]) -> dict[str, Any]:
    attrs: dict[str, Any] = {}
    if _VFX_CLASS in classes:
        level = next((c for c in classes if c in levels), None)
        if level is None:
            logger.warning("Paragraph marked vfx without a known level", classes=classes)
        else:
            attrs[ATTR_VFX_LEVEL] = level
    for key, data_attr in _DATA_ATTRS.items():
        if not paragraph.has_attr(data_attr):
            continue
        value = paragraph[data_attr]
        if key in _BOOL_ATTRS:
            attrs[key] = str(value).lower() == "true"
        elif key == ATTR_PAGE_NUMBER:
            try:
                attrs[key] = int(value)
            except ValueError:
                logger.warning("Ignoring non-numeric page number", value=value)
        else:
            attrs[key] = str(value)
    return attrs


def html_to_document(
    html: str, levels: Iterable[str] = DEFAULT_VFX_LEVELS
) -> Document:
    """Parse editor HTML into a document.

    Paragraphs without a known block class become action blocks, or blank
    separators when they hold no text.

    Raises:
        InvalidInputError: If html is not a string
    """
    if not isinstance(html, str):
        raise InvalidInputError(
            message=f"HTML must be a string, got {type(html).__name__}",
        )
    levels = tuple(levels)
    soup = BeautifulSoup(html, "html.parser")
    blocks: list[Block] = []
    for paragraph in soup.find_all("p"):
        classes = list(paragraph.get("class") or [])
        kind = next((_BLOCK_KINDS[c] for c in classes if c in _BLOCK_KINDS), None)
        spans = _spans(paragraph)
        if kind is None:
            kind = BlockKind.ACTION if paragraph.get_text().strip() else BlockKind.BLANK
        blocks.append(Block(kind, spans, _attrs(paragraph, classes, levels)))
    return Document(blocks=blocks)
