"""Named patterns for every lexical construct of a screenplay.

Everything that classifies a line or strips an annotation goes through the
matchers defined here, so the parser, the document converter, the exporter
and the raw serializer agree on what a scene heading or a cue looks like.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from enum import Enum

DEFAULT_VFX_LEVELS: tuple[str, ...] = ("easy", "mid", "hard", "epic")

# Sentinel line the OCR pipeline writes between pages
OCR_PAGE_SEPARATOR = "==========="

SCENE_HEADING = re.compile(
    r"^(?:#?(?P<lead>[0-9]+[A-Z]*)#?\s+)?"
    r"(?:(?P<setting>int\.?/ext|ext\.?/int|i/e|int|ext|est)(?:\.\s*|\s+)"
    r"(?P<heading>.+?)"
    r"|\.(?!\.)(?P<forced>.+?))"
    r"(?:\s*#(?P<trail>[0-9]+[A-Z]*)#)?$",
    re.IGNORECASE,
)

CHARACTER = re.compile(
    r"^(?:(?P<name>[A-Z_À-Þ][0-9A-Z_À-Þ ._\-']*?)|@(?P<forced>[\w ._\-']+?))"
    r"\s*(?P<ext>(?:\([0-9A-Za-z ._\-']*\)\s*)*)"
    r"(?P<dual>\^?)$"
)

PARENTHETICAL = re.compile(r"^\(.*\)$")

TRANSITION = re.compile(
    r"^(?:FADE (?:TO BLACK|OUT)|CUT TO BLACK)\.$"
    r"|^[^a-z]+ TO:$"
    r"|^< *(?P<forced>.+)$"
)

CENTERED = re.compile(r"^>\s*(?P<text>.+?)\s*<$")

FLASHBACK = re.compile(r"^(?:FLASHBACK|CURRENT\s+DAY|HOME\s+VIDEO)\b")

PAGE_BREAK = re.compile(r"^={3,}\s*(?:#?(?P<page>[0-9]+)[A-Za-z]*#?\.?)?$")

PAGE_NUMBER = re.compile(r"^[0-9]+\.?$")

BLANK = re.compile(r"^\s*$")

FORCED_ACTION = re.compile(r"^!(?P<text>.*)$")

INDENT = re.compile(r"^[ \t]*")

ENTITY_TYPES = ("char", "prop", "env", "fx")

INLINE_ANNOTATION = re.compile(
    r"\*\*(?P<name>[\w'.\- ]+?)\*\*\s*\[\[\s*(?P<type>char|prop|env|fx)\s*\]\]",
    re.IGNORECASE,
)

ENTITY_DECLARATION = re.compile(
    r"(?<!\*\*)\[\[\s*(?P<type>char|prop|env|fx)\s+(?P<names>[\w'.\-, ]+?)\s*\]\]",
    re.IGNORECASE,
)

VFX_ANNOTATION = re.compile(r"\[\[\s*vfx\b\s*(?P<value>[^\[\]]*?)\s*\]\]", re.IGNORECASE)

NOTE = re.compile(
    r"\[\[(?!\s*(?:vfx|char|prop|env|fx)\b)(?P<text>[^\[\]]*?)\]\]",
    re.IGNORECASE,
)

# Lines containing these are malformed; tab and form feed are handled upstream
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0e-\x1f\x7f]")

_SMART_QUOTES = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "‛": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "‟": '"',
        "–": "-",
        "—": "-",
        "\u00a0": " ",
    }
)
_INNER_SPACES = re.compile(r"(?<=\S) {2,}(?=\S)")
_BLANK_RUNS = re.compile(r"\n{3,}")


class LineKind(str, Enum):
    """Structural classification of a single line."""

    SCENE_HEADING = "scene-heading"
    TRANSITION = "transition"
    CENTERED = "centered"
    FLASHBACK = "flashback"
    PAGE_BREAK = "page-break"
    PAGE_NUMBER = "page-number"
    BLANK = "blank"
    CHARACTER = "character"
    PARENTHETICAL = "parenthetical"
    FORCED_ACTION = "forced-action"
    ACTION = "action"


# Kinds that always end an open action or dialogue block
BREAK_KINDS = frozenset(
    {
        LineKind.SCENE_HEADING,
        LineKind.TRANSITION,
        LineKind.CENTERED,
        LineKind.FLASHBACK,
        LineKind.PAGE_BREAK,
        LineKind.PAGE_NUMBER,
    }
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from negative infinity."""
    return math.floor(value + 0.5)


def normalize_setting(setting: str) -> str:
    """Canonical form of a heading setting prefix, e.g. ``int`` -> ``INT.``."""
    return setting.upper().rstrip(".") + "."


def normalize_text(text: str) -> str:
    """Apply typography normalization to raw screenplay text.

    Line endings become LF, form feeds become page-break rules, smart
    quotes and dashes become their ASCII forms, runs of inner spaces and
    trailing whitespace are removed, runs of blank lines are collapsed to
    one, and leading/trailing blank lines are dropped. Leading indentation
    is preserved since the parser relies on it.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\f", "\n===\n")
    text = text.translate(_SMART_QUOTES)
    lines = [_INNER_SPACES.sub(" ", line).rstrip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip("\n")


def indent_of(line: str) -> int:
    """Width of the leading whitespace of a line, tabs counting as four."""
    match = INDENT.match(line)
    leading = match.group(0) if match else ""
    return len(leading.replace("\t", "    "))


def strip_notes(text: str) -> str:
    """Remove free-form notes from text."""
    return NOTE.sub("", text)


def extract_notes(text: str) -> list[str]:
    """Return the trimmed contents of every note in text."""
    return [m.group("text").strip() for m in NOTE.finditer(text)]


def match_structural(text: str) -> LineKind | None:
    """Classify a stripped line by the patterns that outrank a cue.

    Args:
        text: Line content without indentation or annotations

    Returns:
        The matching break kind, BLANK, or None when the line could be a
        character cue or action
    """
    if not text:
        return LineKind.BLANK
    if SCENE_HEADING.match(text):
        return LineKind.SCENE_HEADING
    if CENTERED.match(text):
        return LineKind.CENTERED
    if TRANSITION.match(text):
        return LineKind.TRANSITION
    if FLASHBACK.match(text):
        return LineKind.FLASHBACK
    if PAGE_BREAK.match(text):
        return LineKind.PAGE_BREAK
    if PAGE_NUMBER.match(text):
        return LineKind.PAGE_NUMBER
    return None


def split_declaration_names(names: str) -> list[str]:
    """Split the name list of an entity declaration."""
    return [name.strip() for name in names.split(",") if name.strip()]


class PatternLibrary:
    """Patterns that depend on the configured VFX level set."""

    def __init__(self, levels: Iterable[str] = DEFAULT_VFX_LEVELS) -> None:
        """Compile the level-dependent patterns.

        Args:
            levels: Recognized VFX difficulty level ids
        """
        self.levels: tuple[str, ...] = tuple(levels)
        if not self.levels:
            raise ValueError("At least one VFX level is required")
        alternatives = "|".join(
            re.escape(level) for level in sorted(self.levels, key=len, reverse=True)
        )
        self.vfx_value = re.compile(
            rf"^(?:(?P<shot>[0-9]+[A-Za-z]?)\s+)?(?P<level>{alternatives})$",
            re.IGNORECASE,
        )

    def parse_vfx_value(self, value: str) -> tuple[str, str | None] | None:
        """Split ``"3 hard"`` into level and shot number.

        Returns:
            ``(level, shot)`` with the level in its configured spelling, or
            None when the value does not name a configured level
        """
        match = self.vfx_value.match(value.strip())
        if not match:
            return None
        level = match.group("level").lower()
        for configured in self.levels:
            if configured.lower() == level:
                level = configured
                break
        return level, match.group("shot")
