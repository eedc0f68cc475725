"""Conversion between token lists and the block-list document."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable, Sequence
from typing import Any

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
from scriptbreakdown.exceptions import ConversionTimeoutError, InvalidInputError
from scriptbreakdown.parser.entities import EntityRegistry, EntityType, entity_key
from scriptbreakdown.parser.patterns import (
    CHARACTER,
    DEFAULT_VFX_LEVELS,
    NOTE,
    SCENE_HEADING,
    PatternLibrary,
    normalize_setting,
)
from scriptbreakdown.parser.script_parser import ParseResult, extract_annotations
from scriptbreakdown.parser.state_machine import following_scene_number, next_available
from scriptbreakdown.parser.tokens import (
    Action,
    Centered,
    Character,
    Dialogue,
    DialogueBegin,
    DialogueEnd,
    Flashback,
    PageBreak,
    Parenthetical,
    SceneHeading,
    Token,
    Transition,
    VfxTag,
    merge_vfx,
)

logger = get_logger(__name__)

DEFAULT_CONVERSION_TIMEOUT = 30.0


def _vfx_attrs(vfx: VfxTag | None) -> dict[str, Any]:
    if vfx is None:
        return {}
    attrs: dict[str, Any] = {ATTR_VFX_LEVEL: vfx.level}
    if vfx.shot:
        attrs[ATTR_SHOT_NUMBER] = vfx.shot
    return attrs


def _split_lines(text: str) -> list[str]:
    """Lines of a block token; the trailing newline ends the last line."""
    return text.removesuffix("\n").split("\n")


class _SpanBuilder:
    """Split token text into text, mark and note spans."""

    def __init__(self, entities: EntityRegistry) -> None:
        self.entities = entities
        names = sorted((e.key for e in entities), key=len, reverse=True)
        if names:
            alternatives = "|".join(re.escape(name) for name in names)
            self.pattern: re.Pattern[str] | None = re.compile(
                rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE
            )
        else:
            self.pattern = None

    def _marks(self, text: str) -> list[InlineSpan]:
        if not text:
            return []
        if self.pattern is None:
            return [InlineSpan(SpanKind.TEXT, text)]
        spans: list[InlineSpan] = []
        position = 0
        for match in self.pattern.finditer(text):
            if match.start() > position:
                spans.append(InlineSpan(SpanKind.TEXT, text[position : match.start()]))
            entity = self.entities[entity_key(match.group(0))]
            spans.append(
                InlineSpan(
                    SpanKind.MARK,
                    match.group(0),
                    category=entity.type.value,
                    entity=entity.name,
                )
            )
            position = match.end()
        if position < len(text):
            spans.append(InlineSpan(SpanKind.TEXT, text[position:]))
        return spans

    def build(self, text: str) -> list[InlineSpan]:
        spans: list[InlineSpan] = []
        position = 0
        for match in NOTE.finditer(text):
            spans.extend(self._marks(text[position : match.start()]))
            spans.append(InlineSpan(SpanKind.NOTE, match.group("text")))
            position = match.end()
        spans.extend(self._marks(text[position:]))
        return spans


def _declaration_blocks(entities: EntityRegistry) -> list[Block]:
    """Blocks declaring entities that no text mentions."""
    blocks: list[Block] = []
    for entity_type, group in entities.grouped().items():
        names = [entity.name for entity in group if entity.count == 0]
        if names:
            text = f"[[{entity_type.value} {', '.join(names)}]]"
            blocks.append(
                Block(BlockKind.DECLARATION, [InlineSpan(SpanKind.TEXT, text)])
            )
    return blocks


def tokens_to_document(
    tokens: Sequence[Token],
    entities: EntityRegistry | None = None,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
) -> Document:
    """Render tokens as an editable block document.

    Action and dialogue tokens become one block per line, all sharing the
    token's VFX attributes. Entity mentions become mark spans and notes
    become note spans. A blank block follows every token outside a
    dialogue group and every dialogue group.

    Args:
        tokens: Token list from the parser or a previous conversion
        entities: Registry whose names are marked in the text
        levels: Recognized VFX level ids

    Returns:
        The document

    Raises:
        InvalidInputError: If tokens is None
    """
    if tokens is None:
        raise InvalidInputError(
            message="Cannot convert a missing token list",
            hint="Parse the script before converting it",
        )
    registry = entities if entities is not None else EntityRegistry()
    recognized = set(levels)
    spans = _SpanBuilder(registry)
    blank = BlockKind.BLANK
    blocks: list[Block] = _declaration_blocks(registry)

    for token in tokens:
        vfx = getattr(token, "vfx", None)
        if vfx is not None and vfx.level not in recognized:
            logger.warning("Dropping VFX tag with unknown level", vfx=str(vfx))
            vfx = None
        attrs = _vfx_attrs(vfx)

        if isinstance(token, SceneHeading):
            attrs.update(
                {
                    ATTR_SCENE_NUMBER: token.scene_num,
                    ATTR_PAGE_NUMBER: token.page_num,
                    ATTR_COLLAPSED: token.collapsed,
                    ATTR_SETTING: token.setting or "",
                }
            )
            blocks.append(Block(BlockKind.SCENE_HEADING, spans.build(token.text), attrs))
            blocks.append(Block(blank))
        elif isinstance(token, (Action, Dialogue)):
            kind = BlockKind.ACTION if isinstance(token, Action) else BlockKind.DIALOGUE
            for line in _split_lines(token.text):
                blocks.append(Block(kind, spans.build(line), dict(attrs)))
            if isinstance(token, Action):
                blocks.append(Block(blank))
        elif isinstance(token, Character):
            attrs.update({ATTR_CHARACTER: token.character, ATTR_DUAL: token.dual})
            blocks.append(Block(BlockKind.CHARACTER, spans.build(token.text), attrs))
        elif isinstance(token, Parenthetical):
            blocks.append(
                Block(BlockKind.PARENTHETICAL, spans.build(token.text), attrs)
            )
        elif isinstance(token, DialogueBegin):
            continue
        elif isinstance(token, DialogueEnd):
            blocks.append(Block(blank))
        elif isinstance(token, PageBreak):
            blocks.append(
                Block(BlockKind.PAGE_BREAK, [], {ATTR_PAGE_NUMBER: token.page_num})
            )
            blocks.append(Block(blank))
        elif isinstance(token, Flashback):
            attrs[ATTR_PAGE_NUMBER] = token.page_num
            if token.scene_num is not None:
                attrs[ATTR_SCENE_NUMBER] = token.scene_num
            blocks.append(Block(BlockKind.FLASHBACK, spans.build(token.text), attrs))
            blocks.append(Block(blank))
        elif isinstance(token, (Transition, Centered)):
            kind = (
                BlockKind.TRANSITION
                if isinstance(token, Transition)
                else BlockKind.CENTERED
            )
            blocks.append(Block(kind, spans.build(token.text), attrs))
            blocks.append(Block(blank))

    return Document(blocks=blocks)


class _TokenBuilder:
    """Running state while walking a document back into tokens."""

    def __init__(self, document: Document, patterns: PatternLibrary) -> None:
        self.patterns = patterns
        self.tokens: list[Token] = []
        self.registry = EntityRegistry()
        self.open_kind: BlockKind | None = None
        self.open_lines: list[str] = []
        self.open_vfx: VfxTag | None = None
        self.in_group = False
        self.page_num = 1
        self.scene_num: str | None = None
        self.used: set[str] = set()
        self.explicit_numbers: list[str] = [
            str(block.attrs[ATTR_SCENE_NUMBER])
            for block in document.blocks
            if block.kind is BlockKind.SCENE_HEADING
            and block.attrs.get(ATTR_SCENE_NUMBER) not in (None, "")
        ]
        self.heading_index = 0

    def block_vfx(self, block: Block) -> VfxTag | None:
        level = block.attrs.get(ATTR_VFX_LEVEL)
        if not level:
            return None
        if level not in self.patterns.levels:
            logger.warning("Ignoring block with unknown VFX level", level=level)
            return None
        shot = block.attrs.get(ATTR_SHOT_NUMBER)
        return VfxTag(level=str(level), shot=str(shot) if shot else None)

    def flush(self) -> None:
        if self.open_kind is None:
            return
        text = "\n".join(self.open_lines) + "\n"
        if self.open_kind is BlockKind.ACTION:
            self.tokens.append(Action(text=text, vfx=self.open_vfx))
        else:
            self.tokens.append(Dialogue(text=text, vfx=self.open_vfx))
        self.open_kind = None
        self.open_lines = []
        self.open_vfx = None

    def close_group(self) -> None:
        self.flush()
        if self.in_group:
            self.tokens.append(DialogueEnd())
            self.in_group = False

    def open_group(self) -> None:
        if not self.in_group:
            self.flush()
            self.tokens.append(DialogueBegin())
            self.in_group = True

    def accumulate(self, kind: BlockKind, text: str, vfx: VfxTag | None) -> None:
        if self.open_kind is not kind:
            self.flush()
            self.open_kind = kind
        self.open_lines.append(text)
        self.open_vfx = merge_vfx(self.open_vfx, vfx)

    def heading_number(self, block: Block) -> str:
        explicit = block.attrs.get(ATTR_SCENE_NUMBER)
        if explicit not in (None, ""):
            self.heading_index += 1
            return str(explicit)
        later = set(self.explicit_numbers[self.heading_index :])
        taken = self.used | later
        candidate = following_scene_number(self.scene_num)
        if candidate in taken:
            candidate = next_available(self.scene_num or candidate, taken)
        return candidate

    def scene_heading(self, block: Block, text: str, vfx: VfxTag | None) -> None:
        self.close_group()
        # Headings typed in the editor carry no setting attribute yet
        setting = block.attrs.get(ATTR_SETTING)
        if setting is None:
            match = SCENE_HEADING.match(text.strip())
            if match and match.group("setting"):
                setting = normalize_setting(match.group("setting"))
                text = match.group("heading").strip()
            elif match and match.group("forced"):
                text = match.group("forced").strip()
        scene_num = self.heading_number(block)
        self.scene_num = scene_num
        self.used.add(scene_num)
        page = block.attrs.get(ATTR_PAGE_NUMBER)
        self.tokens.append(
            SceneHeading(
                text=text,
                scene_num=scene_num,
                page_num=int(page) if page not in (None, "") else self.page_num,
                setting=setting or None,
                vfx=vfx,
                collapsed=_as_bool(block.attrs.get(ATTR_COLLAPSED)),
            )
        )

    def character(self, block: Block, text: str, vfx: VfxTag | None) -> None:
        self.close_group()
        self.open_group()
        name = block.attrs.get(ATTR_CHARACTER)
        dual = block.attrs.get(ATTR_DUAL)
        if not name or dual is None:
            cue = CHARACTER.match(text.strip())
            if cue:
                name = name or (cue.group("name") or cue.group("forced")).strip()
                if dual is None:
                    dual = bool(cue.group("dual"))
                    if dual:
                        text = text.rstrip()[:-1].rstrip()
        self.tokens.append(
            Character(
                text=text,
                character=str(name or text.strip()),
                dual=_as_bool(dual),
                vfx=vfx,
            )
        )

    def add(self, block: Block) -> None:
        annotations = extract_annotations(block.text, self.patterns)
        for name, entity_type in annotations.declarations:
            self.registry.declare(name, entity_type)
        for name, entity_type in annotations.mentions:
            self.registry.mention(name, entity_type)
        for mark in block.marks:
            self.registry.mention(
                mark.entity or mark.text, mark.category or EntityType.CHAR
            )

        text = annotations.text
        vfx = merge_vfx(self.block_vfx(block), annotations.vfx)
        kind = block.kind

        if kind in (BlockKind.BLANK, BlockKind.DECLARATION):
            self.close_group()
        elif kind is BlockKind.ACTION:
            if self.in_group:
                self.close_group()
            self.accumulate(kind, text, vfx)
        elif kind is BlockKind.DIALOGUE:
            self.open_group()
            self.accumulate(kind, text, vfx)
        elif kind is BlockKind.PARENTHETICAL:
            self.open_group()
            self.flush()
            self.tokens.append(Parenthetical(text=text, vfx=vfx))
        elif kind is BlockKind.CHARACTER:
            self.character(block, text, vfx)
        elif kind is BlockKind.SCENE_HEADING:
            self.scene_heading(block, text, vfx)
        elif kind is BlockKind.PAGE_BREAK:
            self.close_group()
            page = block.attrs.get(ATTR_PAGE_NUMBER)
            self.page_num = int(page) if page not in (None, "") else self.page_num + 1
            self.tokens.append(PageBreak(page_num=self.page_num))
        elif kind is BlockKind.FLASHBACK:
            self.close_group()
            scene = block.attrs.get(ATTR_SCENE_NUMBER)
            page = block.attrs.get(ATTR_PAGE_NUMBER)
            self.tokens.append(
                Flashback(
                    text=text,
                    scene_num=str(scene) if scene not in (None, "") else None,
                    page_num=int(page) if page not in (None, "") else self.page_num,
                    vfx=vfx,
                )
            )
        elif kind is BlockKind.TRANSITION:
            self.close_group()
            self.tokens.append(Transition(text=text, vfx=vfx))
        elif kind is BlockKind.CENTERED:
            self.close_group()
            self.tokens.append(Centered(text=text, vfx=vfx))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def document_to_tokens(
    document: Document,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
) -> ParseResult:
    """Walk a block document back into tokens and entities.

    Consecutive action or dialogue blocks coalesce into one token, merging
    VFX with the shot-number-wins rule. Entities are rebuilt from mark
    spans, counting one per mark, and from declarations left in the text.
    Headings without a scene number get the next free number.

    Args:
        document: The block document
        levels: Recognized VFX level ids

    Returns:
        ParseResult with the rebuilt tokens and registry

    Raises:
        InvalidInputError: If document is None
    """
    if document is None:
        raise InvalidInputError(
            message="Cannot convert a missing document",
            hint="Load or render a document before converting it back",
        )
    builder = _TokenBuilder(document, PatternLibrary(levels))
    for block in document.blocks:
        builder.add(block)
    builder.close_group()
    logger.debug(
        "Converted document to tokens",
        blocks=len(document.blocks),
        tokens=len(builder.tokens),
    )
    return ParseResult(tokens=builder.tokens, entities=builder.registry)


async def _with_timeout(func: Any, timeout: float | None, operation: str) -> Any:
    try:
        return await asyncio.wait_for(asyncio.to_thread(func), timeout)
    except TimeoutError as e:
        logger.warning("Conversion timed out", operation=operation, timeout=timeout)
        raise ConversionTimeoutError(operation, timeout or 0) from e


async def tokens_to_document_async(
    tokens: Sequence[Token],
    entities: EntityRegistry | None = None,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    timeout: float | None = DEFAULT_CONVERSION_TIMEOUT,
) -> Document:
    """Run ``tokens_to_document`` in a worker thread with a time bound.

    Raises:
        ConversionTimeoutError: If the conversion exceeds ``timeout``
    """
    levels = tuple(levels)
    return await _with_timeout(
        lambda: tokens_to_document(tokens, entities, levels),
        timeout,
        "tokens_to_document",
    )


async def document_to_tokens_async(
    document: Document,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    timeout: float | None = DEFAULT_CONVERSION_TIMEOUT,
) -> ParseResult:
    """Run ``document_to_tokens`` in a worker thread with a time bound.

    Raises:
        ConversionTimeoutError: If the conversion exceeds ``timeout``
    """
    levels = tuple(levels)
    return await _with_timeout(
        lambda: document_to_tokens(document, levels),
        timeout,
        "document_to_tokens",
    )
