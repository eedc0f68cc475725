"""Breakdown rows: one per scene heading and one per dialogue/action block."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from scriptbreakdown.metrics.fractions import fractional_page_count
from scriptbreakdown.metrics.line_counts import (
    PROLOGUE_KEY,
    LineCounts,
    calculate_line_counts,
    line_weight,
    scene_keys,
)
from scriptbreakdown.metrics.shots import (
    DEFAULT_SHOTS_PER_PAGE,
    ShotAllocator,
    scene_shot_counts,
)
from scriptbreakdown.parser.entities import (
    Entity,
    EntityRegistry,
    whole_word_pattern,
)
from scriptbreakdown.parser.patterns import (
    DEFAULT_VFX_LEVELS,
    INLINE_ANNOTATION,
    extract_notes,
    strip_notes,
)
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
    VfxTag,
    merge_vfx,
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class HeaderDescriptor:
    """Column identity and display title for the tabular writer."""

    id: str
    title: str


def shot_column(spp: int) -> str:
    return f"shotCount{spp}"


def entity_column(key: str) -> str:
    return f"entity_{key}"


def build_headers(
    entities: EntityRegistry,
    shots_per_page: Iterable[int] = DEFAULT_SHOTS_PER_PAGE,
) -> list[HeaderDescriptor]:
    """Ordered column descriptors for a breakdown export."""
    headers = [
        HeaderDescriptor("page", "Page"),
        HeaderDescriptor("scene", "Scene"),
        HeaderDescriptor("sceneDescr", "Scene Description"),
        HeaderDescriptor("description", "Description"),
        HeaderDescriptor("text", "Text"),
        HeaderDescriptor("length", "Length"),
        HeaderDescriptor("lengthDec", "Length (dec)"),
    ]
    headers.extend(
        HeaderDescriptor(shot_column(spp), f"Shots @{spp}/pg") for spp in shots_per_page
    )
    headers.extend(
        [
            HeaderDescriptor("difficulty", "Difficulty"),
            HeaderDescriptor("shotNumber", "Shot #"),
            HeaderDescriptor("notes", "Notes"),
        ]
    )
    headers.extend(
        HeaderDescriptor(entity_column(entity.key), entity.name)
        for entity in entities
    )
    return headers


def clean_text(text: str) -> str:
    """Row text: annotations unwrapped, notes removed, whitespace collapsed."""
    text = INLINE_ANNOTATION.sub(lambda m: m.group("name"), text)
    return _WHITESPACE.sub(" ", strip_notes(text)).strip()


def profile_scenes(
    tokens: Sequence[Token], entities: EntityRegistry
) -> dict[str, dict[str, int]]:
    """Count entity mentions per scene.

    Scans cue, parenthetical, dialogue and action text between
    consecutive headings with case-insensitive whole-word matching.

    Returns:
        ``{scene_key: {entity_key: count}}``; prologue text is profiled
        under the empty key
    """
    patterns = {entity.key: whole_word_pattern(entity.key) for entity in entities}
    keys = iter(scene_keys(tokens))
    profiles: dict[str, dict[str, int]] = {}
    current = dict.fromkeys(patterns, 0)
    scene = PROLOGUE_KEY
    seen_prologue = False

    for token in tokens:
        if isinstance(token, SceneHeading):
            if scene != PROLOGUE_KEY or seen_prologue:
                profiles[scene] = current
            scene = next(keys)
            current = dict.fromkeys(patterns, 0)
        elif isinstance(token, (Character, Parenthetical, Dialogue, Action)):
            if scene == PROLOGUE_KEY:
                seen_prologue = True
            for key, pattern in patterns.items():
                current[key] += len(pattern.findall(token.text))
    if scene != PROLOGUE_KEY or seen_prologue:
        profiles[scene] = current
    return profiles


@dataclass
class _RowState:
    page_num: int = 1
    scene: str = PROLOGUE_KEY
    scene_descr: str = ""
    parts: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    block_lines: int = 0
    vfx: VfxTag | None = None
    page_lines: int = 0
    page_accounted: float = 0.0

    def reset_block(self) -> None:
        self.parts = []
        self.notes = []
        self.block_lines = 0
        self.vfx = None


class ExportRowGenerator:
    """Walk tokens and produce format-agnostic breakdown rows."""

    def __init__(
        self,
        levels: Iterable[str] = DEFAULT_VFX_LEVELS,
        shots_per_page: Iterable[int] = DEFAULT_SHOTS_PER_PAGE,
    ) -> None:
        self.levels = tuple(levels)
        self.shots_per_page = tuple(shots_per_page)

    def headers(self, entities: EntityRegistry) -> list[HeaderDescriptor]:
        return build_headers(entities, self.shots_per_page)

    def _vfx_columns(self, vfx: VfxTag | None) -> dict[str, str]:
        if vfx is None or vfx.level not in self.levels:
            return {"difficulty": "", "shotNumber": ""}
        return {"difficulty": vfx.level, "shotNumber": vfx.shot or ""}

    def generate(
        self,
        tokens: Sequence[Token],
        entities: EntityRegistry,
        full: bool = True,
    ) -> list[dict[str, Any]]:
        """Build the breakdown rows.

        Scene headings always produce a summary row. Dialogue and action
        blocks produce a row when they carry a VFX tag, or always when
        ``full`` is set. Cues, parentheticals, transitions and flashbacks
        are folded into the next dialogue or action row; when none follows
        before the page or scene ends they get a row of their own, so block
        rows add up to the page length.

        Args:
            tokens: Token list
            entities: Entity registry for the entity columns
            full: Emit a row for every block, not just VFX-tagged ones

        Returns:
            Row dicts keyed by header id
        """
        counts = calculate_line_counts(tokens)
        profiles = profile_scenes(tokens, entities)
        keys = iter(scene_keys(tokens))
        allocator = ShotAllocator(self.shots_per_page)
        entity_list = list(entities)
        state = _RowState()
        rows: list[dict[str, Any]] = []

        def close_block() -> None:
            row = self._block_row(state, counts, allocator, entity_list)
            if row is not None and (state.vfx is not None or full):
                rows.append(row)
            state.reset_block()

        for token in tokens:
            if isinstance(token, PageBreak):
                if state.parts:
                    close_block()
                state.reset_block()
                state.page_num = token.page_num
                state.page_lines = 0
                state.page_accounted = 0.0
                allocator.reset()
                continue

            if isinstance(token, SceneHeading):
                if state.parts:
                    close_block()
                else:
                    # a heading with no body is absorbed by the next block row
                    state.page_lines += state.block_lines
                state.scene = next(keys)
                heading = f"{token.setting} {token.text}" if token.setting else token.text
                state.scene_descr = clean_text(heading)
                length = fractional_page_count(
                    counts.scenes.get(state.scene, 0),
                    counts.pages.get(state.page_num, 0),
                )
                profile = profiles.get(state.scene, {})
                row: dict[str, Any] = {
                    "page": state.page_num,
                    "scene": state.scene,
                    "sceneDescr": state.scene_descr,
                    "description": "",
                    "text": "",
                    "length": length.display,
                    "lengthDec": length.decimal,
                }
                for spp, shots in scene_shot_counts(
                    length.decimal, self.shots_per_page
                ).items():
                    row[shot_column(spp)] = shots
                row.update(self._vfx_columns(token.vfx))
                row["notes"] = "\n".join(extract_notes(token.text))
                for entity in entity_list:
                    row[entity_column(entity.key)] = profile.get(entity.key) or ""
                rows.append(row)
                state.reset_block()
                state.block_lines = line_weight(token)
                continue

            if isinstance(token, Character):
                state.parts.append(clean_text(token.text) + ":")
            elif isinstance(token, (Parenthetical, Transition, Flashback, Centered)):
                state.parts.append(clean_text(token.text))
            elif isinstance(token, (Dialogue, Action)):
                state.parts.append(clean_text(token.text))
            else:
                continue

            state.notes.extend(extract_notes(token.text))
            state.vfx = merge_vfx(state.vfx, token.vfx)
            state.block_lines += line_weight(token)

            if isinstance(token, (Dialogue, Action)):
                close_block()

        if state.parts:
            close_block()
        return rows

    def _block_row(
        self,
        state: _RowState,
        counts: LineCounts,
        allocator: ShotAllocator,
        entity_list: list[Entity],
    ) -> dict[str, Any] | None:
        """Account the open block's lines and build its row."""
        state.page_lines += state.block_lines
        page_total = counts.pages.get(state.page_num, 0)
        length = fractional_page_count(
            state.page_lines - state.page_accounted, page_total
        )
        state.page_accounted += length.lines
        shots = allocator.allocate(state.page_lines, page_total)

        text = " ".join(part for part in state.parts if part)
        lowered = text.lower()
        row: dict[str, Any] = {
            "page": state.page_num,
            "scene": state.scene,
            "sceneDescr": "",
            "description": state.scene_descr,
            "text": text,
            "length": length.display,
            "lengthDec": length.decimal,
        }
        for spp, count in shots.items():
            row[shot_column(spp)] = count
        row.update(self._vfx_columns(state.vfx))
        row["notes"] = "\n".join(state.notes)
        for entity in entity_list:
            row[entity_column(entity.key)] = (
                1 if entity.key.lower() in lowered else ""
            )
        return row
