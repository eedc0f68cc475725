"""Block-list document model used by the editor surface."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SpanKind(str, Enum):
    """Inline span kinds."""

    TEXT = "text"
    MARK = "mark"
    NOTE = "note"


class BlockKind(str, Enum):
    """Block kinds: token classes plus separators and declarations."""

    SCENE_HEADING = "scene-heading"
    ACTION = "action"
    CHARACTER = "character"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"
    TRANSITION = "transition"
    FLASHBACK = "flashback"
    PAGE_BREAK = "page-break"
    CENTERED = "centered"
    BLANK = "blank"
    DECLARATION = "declaration"


# Attribute keys carried on blocks
ATTR_SCENE_NUMBER = "scene_number"
ATTR_COLLAPSED = "collapsed"
ATTR_PAGE_NUMBER = "page_number"
ATTR_SETTING = "setting"
ATTR_VFX_LEVEL = "vfx_level"
ATTR_SHOT_NUMBER = "shot_number"
ATTR_CHARACTER = "character"
ATTR_DUAL = "dual"


@dataclass(frozen=True)
class InlineSpan:
    """A run of text inside a block.

    Mark spans carry the entity category and the registry display name of
    the entity; note spans hold the note's inner text without the
    ``[[ ]]`` brackets.
    """

    kind: SpanKind
    text: str
    category: str | None = None
    entity: str | None = None

    def render(self) -> str:
        """Text form of the span as it appears in token text."""
        if self.kind is SpanKind.NOTE:
            return f"[[{self.text}]]"
        return self.text


@dataclass
class Block:
    """One paragraph of the document."""

    kind: BlockKind
    spans: list[InlineSpan] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "".join(span.render() for span in self.spans)

    @property
    def marks(self) -> list[InlineSpan]:
        return [span for span in self.spans if span.kind is SpanKind.MARK]

    @property
    def notes(self) -> list[InlineSpan]:
        return [span for span in self.spans if span.kind is SpanKind.NOTE]


@dataclass
class Document:
    """Ordered list of blocks."""

    blocks: list[Block] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.blocks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocks": [
                {
                    "kind": block.kind.value,
                    "attrs": dict(block.attrs),
                    "spans": [
                        {
                            "kind": span.kind.value,
                            "text": span.text,
                            **({"category": span.category} if span.category else {}),
                        }
                        for span in block.spans
                    ],
                }
                for block in self.blocks
            ]
        }
