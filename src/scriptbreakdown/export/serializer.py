"""Raw text export of a token list.

Output follows the fixed-column layout of typed screenplays: action flush
left, dialogue and parentheticals indented ten columns, cues fifteen.
With ``clean=False`` the output also carries ``[[vfx ...]]`` markers and
entity declarations so that parsing it again gives back the same tokens.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from scriptbreakdown.config import get_logger
from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.parser.entities import EntityRegistry
from scriptbreakdown.parser.patterns import (
    CHARACTER,
    LineKind,
    TRANSITION,
    match_structural,
    strip_notes,
)
from scriptbreakdown.parser.tokens import (
    Action,
    Centered,
    Character,
    Dialogue,
    DialogueEnd,
    Flashback,
    PageBreak,
    Parenthetical,
    SceneHeading,
    Token,
    Transition,
    VfxTag,
)

logger = get_logger(__name__)

DIALOGUE_INDENT = 10
CHARACTER_INDENT = 15
ACTION_WIDTH = 80
DIALOGUE_WIDTH = 70
CHARACTER_WIDTH = 65
HEADING_WIDTH = 70
SCENE_NUMBER_WIDTH = 10
PAGE_RULE_WIDTH = 74


def _needs_force(line: str) -> bool:
    """Whether an action line would be read back as something else."""
    bare = strip_notes(line).strip()
    if line.startswith(("!", "@")) or line != line.lstrip():
        return True
    if match_structural(bare) is not None:
        return True
    return CHARACTER.match(bare) is not None


def _is_natural_cue(text: str) -> bool:
    bare = strip_notes(text).strip()
    cue = CHARACTER.match(bare)
    return bool(cue and cue.group("name")) and match_structural(bare) is None


def _is_natural_transition(text: str) -> bool:
    match = TRANSITION.match(text)
    return (
        match is not None
        and not match.group("forced")
        and match_structural(strip_notes(text).strip()) is LineKind.TRANSITION
    )


class RawSerializer:
    """Render tokens back to column-aligned screenplay text."""

    def __init__(self, clean: bool = True, group_size: int = 5) -> None:
        """Initialize the serializer.

        Args:
            clean: Omit VFX markers and entity declarations
            group_size: Entity names per declaration line
        """
        self.clean = clean
        self.group_size = max(1, group_size)

    def _marker(self, vfx: VfxTag | None) -> str:
        if vfx is None or self.clean:
            return ""
        return f" [[vfx {vfx}]]"

    @staticmethod
    def _line(content: str, width: int, marker: str = "", indent: int = 0) -> str:
        line = " " * indent + content
        if marker:
            return line.ljust(indent + width) + marker
        return line.rstrip()

    def declarations(self, entities: EntityRegistry) -> list[str]:
        """Declaration lines for every entity, grouped by category."""
        lines: list[str] = []
        for entity_type, group in entities.grouped().items():
            names = [entity.name for entity in group]
            for start in range(0, len(names), self.group_size):
                chunk = ", ".join(names[start : start + self.group_size])
                lines.append(f"[[{entity_type.value} {chunk}]]")
        return lines

    def render_token(self, token: Token) -> list[str]:
        """Lines for one token, including the blank line that follows it."""
        marker = self._marker(getattr(token, "vfx", None))

        if isinstance(token, Action):
            lines = []
            for index, line in enumerate(token.text.removesuffix("\n").split("\n")):
                content = "!" + line if _needs_force(line) else line
                lines.append(
                    self._line(content, ACTION_WIDTH, marker if index == 0 else "")
                )
            return [*lines, ""]

        if isinstance(token, Dialogue):
            return [
                self._line(
                    line,
                    DIALOGUE_WIDTH,
                    marker if index == 0 else "",
                    indent=DIALOGUE_INDENT,
                )
                for index, line in enumerate(token.text.removesuffix("\n").split("\n"))
            ]

        if isinstance(token, Parenthetical):
            return [
                self._line(token.text, DIALOGUE_WIDTH, marker, indent=DIALOGUE_INDENT)
            ]

        if isinstance(token, Character):
            cue = token.text + ("^" if token.dual else "")
            if not _is_natural_cue(cue):
                cue = "@" + cue
            return [self._line(cue, CHARACTER_WIDTH, marker, indent=CHARACTER_INDENT)]

        if isinstance(token, DialogueEnd):
            return [""]

        if isinstance(token, SceneHeading):
            heading = f"{token.setting} {token.text}" if token.setting else "." + token.text
            number = f"#{token.scene_num}#" if token.scene_num else ""
            line = (
                heading.ljust(HEADING_WIDTH) + number.rjust(SCENE_NUMBER_WIDTH) + marker
            )
            return [line.rstrip(), ""]

        if isinstance(token, PageBreak):
            return ["=" * PAGE_RULE_WIDTH + " " + str(token.page_num).rjust(5), ""]

        if isinstance(token, Transition):
            text = token.text if _is_natural_transition(token.text) else "< " + token.text
            return [self._line(text, ACTION_WIDTH, marker), ""]

        if isinstance(token, Centered):
            return [self._line(f"> {token.text} <", ACTION_WIDTH, marker), ""]

        if isinstance(token, Flashback):
            return [self._line(token.text, ACTION_WIDTH, marker), ""]

        return []

    def serialize(
        self, tokens: Sequence[Token], entities: EntityRegistry | None = None
    ) -> str:
        """Render a whole token list."""
        lines: list[str] = []
        if not self.clean and entities is not None and len(entities):
            lines.extend(self.declarations(entities))
            lines.append("")
        for token in tokens:
            for line in self.render_token(token):
                # Never emit two blank lines in a row
                if line == "" and lines and lines[-1] == "":
                    continue
                lines.append(line)
        while lines and lines[-1] == "":
            lines.pop()
        return "\n".join(lines) + "\n"


def tokens_to_raw(
    tokens: Sequence[Token],
    entities: EntityRegistry | None = None,
    clean: bool = True,
    group_size: int = 5,
) -> str:
    """Serialize tokens to raw screenplay text.

    Args:
        tokens: Token list
        entities: Registry to declare at the top when not clean
        clean: Omit annotation markers
        group_size: Entity names per declaration line

    Returns:
        The screenplay text
    """
    return RawSerializer(clean=clean, group_size=group_size).serialize(tokens, entities)


def write_tokens(
    tokens: Sequence[Token],
    entities: EntityRegistry | None,
    path: Path | str,
    clean: bool = True,
    group_size: int = 5,
) -> Path:
    """Write the raw text export to a file.

    Raises:
        ExportError: If the file cannot be written
    """
    path = Path(path)
    text = tokens_to_raw(tokens, entities, clean=clean, group_size=group_size)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ExportError(
            message=f"Failed to write raw script: {path}",
            hint="Check that the directory exists and is writable",
            details={"path": str(path), "error": str(e)},
        ) from e
    logger.info("Wrote raw script", path=str(path), clean=clean, tokens=len(tokens))
    return path
