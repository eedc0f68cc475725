"""Block accumulation state machine for the script parser.

The parser classifies each line into a ``ClassifiedLine`` and feeds it to
``step``, a pure function from ``(MachineState, ClassifiedLine)`` to the
next state and the tokens emitted by that line. ``finish`` flushes whatever
block is still open at the end of input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from scriptbreakdown.parser.patterns import BREAK_KINDS, LineKind
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

_SCENE_NUMBER = re.compile(r"^(?P<number>[0-9]*)(?P<suffix>[A-Z]*)$")


class BlockState(str, Enum):
    """What kind of block is being accumulated."""

    IDLE = "idle"
    ACTION = "action"
    DIALOGUE = "dialogue"


@dataclass(frozen=True)
class ClassifiedLine:
    """One line after annotation stripping and classification."""

    kind: LineKind
    text: str
    indent: int = 0
    vfx: VfxTag | None = None
    indent_jump: bool = False
    rightward: bool = False
    line_number: int = 0
    setting: str | None = None
    scene_marker: str | None = None
    page_marker: int | None = None
    character: str | None = None
    dual: bool = False
    forced_cue: bool = False


@dataclass(frozen=True)
class MachineState:
    """Parser state carried from one line to the next."""

    block: BlockState = BlockState.IDLE
    lines: tuple[str, ...] = ()
    vfx: VfxTag | None = None
    block_indent: int | None = None
    after_blank: bool = False
    page_num: int = 1
    scene_num: str | None = None
    used_scenes: frozenset[str] = frozenset()


def _increment_suffix(suffix: str) -> str:
    """``"" -> "A"``, ``"A" -> "B"``, ``"Z" -> "AA"``."""
    if not suffix:
        return "A"
    head, last = suffix[:-1], suffix[-1]
    if last == "Z":
        return _increment_suffix(head) + "A"
    return head + chr(ord(last) + 1)


def next_available(candidate: str, used: Iterable[str]) -> str:
    """Disambiguate a scene number that is already taken.

    A colliding number gets a letter suffix, and a colliding suffixed
    number gets the next letter: ``5`` -> ``5A`` -> ``5B``.

    Args:
        candidate: Desired scene number
        used: Scene numbers already assigned

    Returns:
        ``candidate`` itself when free, otherwise the first free variant
    """
    taken = set(used)
    if candidate not in taken:
        return candidate
    match = _SCENE_NUMBER.match(candidate)
    if match:
        number, suffix = match.group("number"), match.group("suffix")
    else:
        number, suffix = candidate, ""
    while True:
        suffix = _increment_suffix(suffix)
        variant = f"{number}{suffix}"
        if variant not in taken:
            return variant


def following_scene_number(previous: str | None) -> str:
    """Numeric part of the previous scene number plus one."""
    if previous is None:
        return "1"
    match = re.match(r"^[0-9]+", previous)
    return str(int(match.group(0)) + 1) if match else "1"


def _flush(state: MachineState) -> list[Token]:
    """Tokens that close the open block."""
    text = "\n".join(state.lines) + "\n" if state.lines else ""
    if state.block is BlockState.ACTION:
        return [Action(text=text, vfx=state.vfx)] if state.lines else []
    if state.block is BlockState.DIALOGUE:
        tokens: list[Token] = []
        if state.lines:
            tokens.append(Dialogue(text=text, vfx=state.vfx))
        tokens.append(DialogueEnd())
        return tokens
    return []


def _idle(state: MachineState) -> MachineState:
    return replace(
        state,
        block=BlockState.IDLE,
        lines=(),
        vfx=None,
        block_indent=None,
        after_blank=False,
    )


def _close_and_retry(
    state: MachineState, line: ClassifiedLine
) -> tuple[MachineState, list[Token]]:
    closed = _flush(state)
    new_state, tokens = _step_idle(_idle(state), line)
    return new_state, closed + tokens


def _step_idle(
    state: MachineState, line: ClassifiedLine
) -> tuple[MachineState, list[Token]]:
    kind = line.kind

    if kind in (LineKind.BLANK, LineKind.PAGE_NUMBER):
        return state, []

    if kind is LineKind.SCENE_HEADING:
        if line.scene_marker:
            candidate = line.scene_marker.upper()
        else:
            candidate = following_scene_number(state.scene_num)
        scene_num = next_available(candidate, state.used_scenes)
        heading = SceneHeading(
            text=line.text,
            scene_num=scene_num,
            page_num=state.page_num,
            setting=line.setting,
            vfx=line.vfx,
        )
        return (
            replace(
                state,
                scene_num=scene_num,
                used_scenes=state.used_scenes | {scene_num},
            ),
            [heading],
        )

    if kind is LineKind.PAGE_BREAK:
        if line.page_marker is not None and line.page_marker > state.page_num:
            page_num = line.page_marker
        else:
            page_num = state.page_num + 1
        return replace(state, page_num=page_num), [PageBreak(page_num=page_num)]

    if kind is LineKind.TRANSITION:
        return state, [Transition(text=line.text, vfx=line.vfx)]

    if kind is LineKind.CENTERED:
        return state, [Centered(text=line.text, vfx=line.vfx)]

    if kind is LineKind.FLASHBACK:
        flashback = Flashback(
            text=line.text,
            scene_num=state.scene_num,
            page_num=state.page_num,
            vfx=line.vfx,
        )
        return state, [flashback]

    if kind is LineKind.CHARACTER:
        cue = Character(
            text=line.text,
            character=line.character or line.text,
            dual=line.dual,
            vfx=line.vfx,
        )
        return replace(state, block=BlockState.DIALOGUE), [DialogueBegin(), cue]

    return (
        replace(state, block=BlockState.ACTION, lines=(line.text,), vfx=line.vfx),
        [],
    )


def _step_action(
    state: MachineState, line: ClassifiedLine
) -> tuple[MachineState, list[Token]]:
    kind = line.kind
    if kind is LineKind.BLANK:
        return _idle(state), _flush(state)
    if kind in BREAK_KINDS:
        return _close_and_retry(state, line)
    if kind is LineKind.CHARACTER and (
        line.forced_cue or (line.indent_jump and line.rightward)
    ):
        return _close_and_retry(state, line)
    return (
        replace(
            state,
            lines=(*state.lines, line.text),
            vfx=merge_vfx(state.vfx, line.vfx),
        ),
        [],
    )


def _step_dialogue(
    state: MachineState, line: ClassifiedLine
) -> tuple[MachineState, list[Token]]:
    kind = line.kind
    if (
        kind in BREAK_KINDS
        or kind is LineKind.FORCED_ACTION
        or (kind is LineKind.CHARACTER and line.forced_cue)
        or (line.indent_jump and state.lines and kind is not LineKind.BLANK)
    ):
        return _close_and_retry(state, line)

    if kind is LineKind.BLANK:
        return replace(state, after_blank=True), []

    if state.after_blank and not (
        line.indent == state.block_indent and line.indent > 0
    ):
        return _close_and_retry(state, line)

    block_indent = line.indent if state.block_indent is None else state.block_indent

    if kind is LineKind.PARENTHETICAL:
        tokens: list[Token] = []
        if state.lines:
            tokens.append(Dialogue(text="\n".join(state.lines) + "\n", vfx=state.vfx))
        tokens.append(Parenthetical(text=line.text, vfx=line.vfx))
        return (
            replace(
                state,
                lines=(),
                vfx=None,
                block_indent=block_indent,
                after_blank=False,
            ),
            tokens,
        )

    return (
        replace(
            state,
            lines=(*state.lines, line.text),
            vfx=merge_vfx(state.vfx, line.vfx),
            block_indent=block_indent,
            after_blank=False,
        ),
        [],
    )


def step(
    state: MachineState, line: ClassifiedLine
) -> tuple[MachineState, list[Token]]:
    """Advance the machine by one classified line.

    Args:
        state: Current machine state
        line: The next classified line

    Returns:
        The next state and the tokens this line completed
    """
    if state.block is BlockState.ACTION:
        return _step_action(state, line)
    if state.block is BlockState.DIALOGUE:
        return _step_dialogue(state, line)
    return _step_idle(state, line)


def finish(state: MachineState) -> list[Token]:
    """Tokens for the block still open at end of input."""
    return _flush(state)
