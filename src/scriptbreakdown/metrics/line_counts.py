"""Per-page and per-scene line accounting."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from scriptbreakdown.parser.state_machine import next_available
from scriptbreakdown.parser.tokens import (
    Action,
    Centered,
    Character,
    Dialogue,
    Flashback,
    PageBreak,
    Parenthetical,
    SceneHeading,
    Token,
    Transition,
)

# Scene key for lines that come before the first scene heading
PROLOGUE_KEY = ""


def line_weight(token: Token) -> int:
    """Printed lines a token occupies.

    Scene headings count 2. Cues and parentheticals count 1 plus their
    embedded newlines; dialogue, action, flashbacks, transitions and
    centered text count 2 plus their embedded newlines. Structural
    tokens count 0.
    """
    if isinstance(token, SceneHeading):
        return 2
    if isinstance(token, (Character, Parenthetical)):
        return 1 + token.text.strip().count("\n")
    if isinstance(token, (Dialogue, Action, Flashback, Transition, Centered)):
        return 2 + token.text.strip().count("\n")
    return 0


def scene_keys(tokens: Sequence[Token]) -> list[str]:
    """One unique key per scene heading, in order.

    Repeated scene numbers get a letter suffix so two headings numbered
    ``5`` are counted as ``5`` and ``5A``.
    """
    keys: list[str] = []
    used: set[str] = set()
    for token in tokens:
        if isinstance(token, SceneHeading):
            key = next_available(token.scene_num, used)
            used.add(key)
            keys.append(key)
    return keys


@dataclass
class LineCounts:
    """Line totals keyed by page number and by scene key."""

    pages: dict[int, int] = field(default_factory=dict)
    scenes: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.pages.values())


def calculate_line_counts(tokens: Sequence[Token]) -> LineCounts:
    """Run the page and scene line-count passes over a token list.

    A page break starts a new page total; a scene heading starts a new
    scene total. Lines before the first heading are kept under
    ``PROLOGUE_KEY`` so scene totals always sum to the page totals.
    """
    counts = LineCounts()
    keys = iter(scene_keys(tokens))
    page = 1
    scene = PROLOGUE_KEY
    counts.pages[page] = 0

    for token in tokens:
        if isinstance(token, PageBreak):
            page = token.page_num
            counts.pages.setdefault(page, 0)
            continue
        if isinstance(token, SceneHeading):
            scene = next(keys)
            counts.scenes.setdefault(scene, 0)
        weight = line_weight(token)
        if not weight:
            continue
        counts.pages[page] = counts.pages.get(page, 0) + weight
        counts.scenes[scene] = counts.scenes.get(scene, 0) + weight

    return counts
