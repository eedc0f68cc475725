"""Screenplay text parser: raw text to tokens plus entity registry."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from scriptbreakdown.config import get_logger
from scriptbreakdown.exceptions import InvalidInputError, ParseLineError
from scriptbreakdown.parser.entities import EntityRegistry
from scriptbreakdown.parser.patterns import (
    CENTERED,
    CHARACTER,
    CONTROL_CHARS,
    DEFAULT_VFX_LEVELS,
    ENTITY_DECLARATION,
    FORCED_ACTION,
    INLINE_ANNOTATION,
    PAGE_BREAK,
    PARENTHETICAL,
    SCENE_HEADING,
    TRANSITION,
    VFX_ANNOTATION,
    LineKind,
    PatternLibrary,
    indent_of,
    match_structural,
    normalize_setting,
    normalize_text,
    split_declaration_names,
    strip_notes,
)
from scriptbreakdown.parser.state_machine import (
    ClassifiedLine,
    MachineState,
    finish,
    step,
)
from scriptbreakdown.parser.tokens import (
    Character,
    Token,
    VfxTag,
    merge_vfx,
    token_to_dict,
)

logger = get_logger(__name__)


@dataclass
class ParseResult:
    """Tokens and entities produced by one parse or conversion pass."""

    tokens: list[Token]
    entities: EntityRegistry = field(default_factory=EntityRegistry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokens": [token_to_dict(token) for token in self.tokens],
            "entities": self.entities.to_dict(),
        }


@dataclass
class LineAnnotations:
    """Annotations pulled out of a single line."""

    text: str
    vfx: VfxTag | None = None
    mentions: list[tuple[str, str]] = field(default_factory=list)
    declarations: list[tuple[str, str]] = field(default_factory=list)

    @property
    def annotation_only(self) -> bool:
        """True when the line held nothing but annotations."""
        return not self.text.strip() and bool(
            self.vfx or self.mentions or self.declarations
        )


def extract_annotations(line: str, patterns: PatternLibrary) -> LineAnnotations:
    """Strip VFX and entity annotations from a line.

    Inline ``**Name**[[type]]`` annotations are replaced by the bare name
    and recorded as mentions. ``[[type A, B]]`` declarations are removed
    and recorded as declarations. The last valid ``[[vfx ...]]`` value on
    the line is merged into the line's VFX tag.
    """
    result = LineAnnotations(text=line)

    def _vfx(match: Any) -> str:
        value = match.group("value")
        tag = VfxTag.parse(value, patterns)
        if tag is None:
            logger.warning(
                "Ignoring VFX annotation with unknown level",
                value=value,
                levels=list(patterns.levels),
            )
        else:
            result.vfx = merge_vfx(result.vfx, tag)
        return ""

    def _inline(match: Any) -> str:
        name = match.group("name").strip()
        result.mentions.append((name, match.group("type").lower()))
        return name

    def _declaration(match: Any) -> str:
        entity_type = match.group("type").lower()
        for name in split_declaration_names(match.group("names")):
            result.declarations.append((name, entity_type))
        return ""

    text = VFX_ANNOTATION.sub(_vfx, line)
    text = INLINE_ANNOTATION.sub(_inline, text)
    text = ENTITY_DECLARATION.sub(_declaration, text)
    result.text = text.rstrip() if text != line else line
    return result


SENTENCE_END = (".", "!", "?")


def _ends_sentence(name: str | None) -> bool:
    return bool(name) and name.rstrip().endswith(SENTENCE_END)


def classify_line(
    text: str,
    *,
    vfx: VfxTag | None = None,
    previous_indent: int = 0,
    after_blank: bool = True,
    next_blank: bool = True,
    indent_threshold: int = 4,
    line_number: int = 0,
) -> ClassifiedLine:
    """Classify one annotation-free line.

    Precedence: forced action, scene heading, transition or centered,
    flashback, page break or page number, blank, character cue,
    parenthetical, action. A cue needs the CHARACTER pattern plus either
    an indent jump or a blank line before and a non-blank line after it.
    Without an indent jump, an all-caps line ending in sentence punctuation
    stays action. ``@name`` cues need neither.

    Raises:
        ParseLineError: If the line contains control characters
    """
    if CONTROL_CHARS.search(text):
        raise ParseLineError(
            "Line contains control characters",
            line_number=line_number,
            line=text,
            hint="Remove non-printable characters from the script",
        )

    indent = indent_of(text)
    stripped = text.strip()
    bare = strip_notes(stripped).strip()
    delta = indent - previous_indent
    common: dict[str, Any] = {
        "indent": indent,
        "vfx": vfx,
        "indent_jump": bool(stripped) and abs(delta) > indent_threshold,
        "rightward": delta > 0,
        "line_number": line_number,
    }

    forced = FORCED_ACTION.match(stripped)
    if forced:
        return ClassifiedLine(LineKind.FORCED_ACTION, forced.group("text"), **common)

    kind = match_structural(bare) if bare else (
        LineKind.BLANK if not stripped else LineKind.ACTION
    )

    heading = SCENE_HEADING.match(bare) if kind is LineKind.SCENE_HEADING else None
    if heading:
        setting = heading.group("setting")
        heading_text = heading.group("heading") or heading.group("forced")
        return ClassifiedLine(
            LineKind.SCENE_HEADING,
            heading_text.strip(),
            setting=normalize_setting(setting) if setting else None,
            scene_marker=heading.group("lead") or heading.group("trail"),
            **common,
        )

    centered = (
        (CENTERED.match(stripped) or CENTERED.match(bare))
        if kind is LineKind.CENTERED
        else None
    )
    if centered:
        return ClassifiedLine(LineKind.CENTERED, centered.group("text"), **common)

    if kind is LineKind.TRANSITION:
        transition = TRANSITION.match(stripped)
        if transition and transition.group("forced"):
            return ClassifiedLine(
                LineKind.TRANSITION, transition.group("forced").strip(), **common
            )
        return ClassifiedLine(LineKind.TRANSITION, stripped, **common)

    if kind is LineKind.PAGE_BREAK:
        page = PAGE_BREAK.match(bare)
        marker = page.group("page") if page else None
        return ClassifiedLine(
            LineKind.PAGE_BREAK,
            bare,
            page_marker=int(marker) if marker else None,
            **common,
        )

    if kind is not None:
        return ClassifiedLine(kind, stripped, **common)

    cue = CHARACTER.match(bare)
    if cue and (
        cue.group("forced")
        or common["indent_jump"]
        or (
            after_blank
            and not next_blank
            and not _ends_sentence(cue.group("name"))
        )
    ):
        name = (cue.group("name") or cue.group("forced")).strip()
        cue_text = bare[1:] if cue.group("forced") else bare
        if cue.group("dual"):
            cue_text = cue_text[:-1]
        return ClassifiedLine(
            LineKind.CHARACTER,
            cue_text.rstrip(),
            character=name,
            dual=bool(cue.group("dual")),
            forced_cue=bool(cue.group("forced")),
            **common,
        )

    if PARENTHETICAL.match(bare):
        return ClassifiedLine(LineKind.PARENTHETICAL, stripped, **common)

    return ClassifiedLine(LineKind.ACTION, stripped, **common)


class ScriptParser:
    """Parse raw screenplay text into a flat token sequence.

    Each call to ``parse`` owns its own state and registry, so one parser
    instance can be shared freely.
    """

    def __init__(
        self,
        levels: Iterable[str] = DEFAULT_VFX_LEVELS,
        indent_threshold: int = 4,
    ) -> None:
        """Initialize the parser.

        Args:
            levels: Recognized VFX difficulty level ids
            indent_threshold: Indentation change, in columns, that counts
                as an indent jump
        """
        self.patterns = PatternLibrary(levels)
        self.indent_threshold = indent_threshold

    def parse(self, text: str) -> ParseResult:
        """Parse screenplay text.

        Args:
            text: Raw screenplay text

        Returns:
            ParseResult with the tokens and entity registry

        Raises:
            InvalidInputError: If text is None, not a string or empty
        """
        if text is None or not isinstance(text, str):
            raise InvalidInputError(
                message=f"Script must be a string, got {type(text).__name__}",
                hint="Pass the screenplay text, not a path or file object",
            )
        if not text.strip():
            raise InvalidInputError(
                message="Script is empty",
                hint="The file or OCR output contained no text",
            )

        lines = normalize_text(text).split("\n")
        annotated = [
            (number, extract_annotations(line, self.patterns))
            for number, line in enumerate(lines, start=1)
        ]
        # Lines that held nothing but annotations take no part in layout
        content = [(n, a) for n, a in annotated if not a.annotation_only]

        registry = EntityRegistry()
        for _, annotations in annotated:
            if annotations.annotation_only:
                self._register(registry, annotations)

        state = MachineState()
        tokens: list[Token] = []
        previous_indent = 0
        after_blank = True

        for index, (line_number, annotations) in enumerate(content):
            line_text = annotations.text
            next_blank = (
                index + 1 >= len(content) or not content[index + 1][1].text.strip()
            )
            try:
                classified = classify_line(
                    line_text,
                    vfx=annotations.vfx,
                    previous_indent=previous_indent,
                    after_blank=after_blank,
                    next_blank=next_blank,
                    indent_threshold=self.indent_threshold,
                    line_number=line_number,
                )
                state, emitted = step(state, classified)
            except (ParseLineError, ValueError, TypeError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed line",
                    line_number=line_number,
                    error=str(e),
                )
                continue

            self._register(registry, annotations)
            if any(isinstance(token, Character) for token in emitted):
                registry.mention(classified.character or classified.text, "char")
            elif classified.kind is not LineKind.BLANK:
                registry.count_occurrences(
                    strip_notes(line_text),
                    counted=[name for name, _ in annotations.mentions],
                )
            tokens.extend(emitted)

            if classified.kind is LineKind.BLANK:
                after_blank = True
            else:
                after_blank = False
                previous_indent = classified.indent

        tokens.extend(finish(state))
        logger.debug(
            "Parsed script",
            lines=len(lines),
            tokens=len(tokens),
            entities=len(registry),
        )
        return ParseResult(tokens=tokens, entities=registry)

    @staticmethod
    def _register(registry: EntityRegistry, annotations: LineAnnotations) -> None:
        for name, entity_type in annotations.declarations:
            registry.declare(name, entity_type)
        for name, entity_type in annotations.mentions:
            registry.mention(name, entity_type)


def parse_script_sync(
    text: str,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    indent_threshold: int = 4,
) -> ParseResult:
    """Parse screenplay text with a throwaway parser."""
    return ScriptParser(levels, indent_threshold).parse(text)


async def parse_script(
    text: str,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    indent_threshold: int = 4,
) -> ParseResult:
    """Parse screenplay text in a worker thread.

    The caller's event loop stays responsive while the synchronous parser
    runs; the result is identical to ``parse_script_sync``.
    """
    return await asyncio.to_thread(
        parse_script_sync, text, tuple(levels), indent_threshold
    )
