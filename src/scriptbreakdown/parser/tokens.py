"""Token model for parsed screenplays.

Each token type is its own frozen dataclass carrying exactly the fields
valid for it. ``Token`` is the union of all of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from scriptbreakdown.exceptions import InvalidInputError
from scriptbreakdown.parser.patterns import DEFAULT_VFX_LEVELS, PatternLibrary


class TokenType(str, Enum):
    """Token type tags, matching the serialized ``type`` key."""

    SCENE_HEADING = "scene-heading"
    ACTION = "action"
    CHARACTER = "character"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"
    DIALOGUE_BEGIN = "dialogue-begin"
    DIALOGUE_END = "dialogue-end"
    TRANSITION = "transition"
    FLASHBACK = "flashback"
    PAGE_BREAK = "page-break"
    CENTERED = "centered"


@dataclass(frozen=True)
class VfxTag:
    """A VFX difficulty level with an optional shot number."""

    level: str
    shot: str | None = None

    def __str__(self) -> str:
        if self.shot:
            return f"{self.shot} {self.level}"
        return self.level

    @classmethod
    def parse(
        cls, value: str | None, patterns: PatternLibrary | None = None
    ) -> VfxTag | None:
        """Parse ``"hard"`` or ``"3 hard"``.

        Returns:
            The tag, or None when value is empty or names an unknown level
        """
        if not value:
            return None
        parsed = (patterns or _DEFAULT_PATTERNS).parse_vfx_value(value)
        if parsed is None:
            return None
        level, shot = parsed
        return cls(level=level, shot=shot)

    def merge(self, other: VfxTag | None) -> VfxTag:
        """Combine with a later annotation of the same block.

        A later tag carrying a shot number replaces this one. A later bare
        level updates the level but keeps this tag's shot number.
        """
        if other is None:
            return self
        if other.shot:
            return other
        return VfxTag(level=other.level, shot=self.shot)


_DEFAULT_PATTERNS = PatternLibrary(DEFAULT_VFX_LEVELS)


def merge_vfx(current: VfxTag | None, new: VfxTag | None) -> VfxTag | None:
    """Merge two optional tags with the shot-number-wins rule."""
    if current is None:
        return new
    return current.merge(new)


@dataclass(frozen=True)
class SceneHeading:
    text: str
    scene_num: str
    page_num: int
    setting: str | None = None
    vfx: VfxTag | None = None
    collapsed: bool = False
    type = TokenType.SCENE_HEADING


@dataclass(frozen=True)
class Action:
    text: str
    vfx: VfxTag | None = None
    type = TokenType.ACTION


@dataclass(frozen=True)
class Character:
    text: str
    character: str
    dual: bool = False
    vfx: VfxTag | None = None
    type = TokenType.CHARACTER


@dataclass(frozen=True)
class Parenthetical:
    text: str
    vfx: VfxTag | None = None
    type = TokenType.PARENTHETICAL


@dataclass(frozen=True)
class Dialogue:
    text: str
    vfx: VfxTag | None = None
    type = TokenType.DIALOGUE


@dataclass(frozen=True)
class DialogueBegin:
    type = TokenType.DIALOGUE_BEGIN


@dataclass(frozen=True)
class DialogueEnd:
    type = TokenType.DIALOGUE_END


@dataclass(frozen=True)
class Transition:
    text: str
    vfx: VfxTag | None = None
    type = TokenType.TRANSITION


@dataclass(frozen=True)
class Flashback:
    text: str
    scene_num: str | None
    page_num: int
    vfx: VfxTag | None = None
    type = TokenType.FLASHBACK


@dataclass(frozen=True)
class PageBreak:
    page_num: int
    type = TokenType.PAGE_BREAK


@dataclass(frozen=True)
class Centered:
    text: str
    vfx: VfxTag | None = None
    type = TokenType.CENTERED


Token = (
    SceneHeading
    | Action
    | Character
    | Parenthetical
    | Dialogue
    | DialogueBegin
    | DialogueEnd
    | Transition
    | Flashback
    | PageBreak
    | Centered
)

TOKEN_CLASSES: dict[TokenType, type] = {
    TokenType.SCENE_HEADING: SceneHeading,
    TokenType.ACTION: Action,
    TokenType.CHARACTER: Character,
    TokenType.PARENTHETICAL: Parenthetical,
    TokenType.DIALOGUE: Dialogue,
    TokenType.DIALOGUE_BEGIN: DialogueBegin,
    TokenType.DIALOGUE_END: DialogueEnd,
    TokenType.TRANSITION: Transition,
    TokenType.FLASHBACK: Flashback,
    TokenType.PAGE_BREAK: PageBreak,
    TokenType.CENTERED: Centered,
}

# Tokens whose text is a run of lines joined with newlines
BLOCK_TYPES = frozenset({TokenType.ACTION, TokenType.DIALOGUE})


def token_to_dict(token: Token) -> dict[str, Any]:
    """Serialize a token to its JSON form.

    Optional fields are omitted when unset so the output matches the
    flat ``{type, text, vfx, sceneNum, pageNum, ...}`` records.
    """
    data: dict[str, Any] = {"type": token.type.value}
    text = getattr(token, "text", None)
    if text is not None:
        data["text"] = text
    if isinstance(token, SceneHeading):
        data["sceneNum"] = token.scene_num
        data["pageNum"] = token.page_num
        if token.setting:
            data["setting"] = token.setting
        if token.collapsed:
            data["collapsed"] = True
    elif isinstance(token, Flashback):
        if token.scene_num is not None:
            data["sceneNum"] = token.scene_num
        data["pageNum"] = token.page_num
    elif isinstance(token, PageBreak):
        data["pageNum"] = token.page_num
    elif isinstance(token, Character):
        data["character"] = token.character
        data["dual"] = token.dual
    vfx = getattr(token, "vfx", None)
    if vfx is not None:
        data["vfx"] = str(vfx)
    return data


def token_from_dict(
    data: dict[str, Any], patterns: PatternLibrary | None = None
) -> Token:
    """Build a token from its JSON form.

    Raises:
        InvalidInputError: If the type is unknown or a required field is
            missing
    """
    try:
        token_type = TokenType(data["type"])
    except (KeyError, ValueError) as e:
        raise InvalidInputError(
            message=f"Unknown token type: {data.get('type')!r}",
            hint=f"Valid types: {', '.join(t.value for t in TokenType)}",
        ) from e

    vfx = VfxTag.parse(data.get("vfx"), patterns)
    try:
        if token_type is TokenType.SCENE_HEADING:
            return SceneHeading(
                text=data["text"],
                scene_num=str(data["sceneNum"]),
                page_num=int(data["pageNum"]),
                setting=data.get("setting"),
                vfx=vfx,
                collapsed=bool(data.get("collapsed", False)),
            )
        if token_type is TokenType.FLASHBACK:
            scene_num = data.get("sceneNum")
            return Flashback(
                text=data["text"],
                scene_num=None if scene_num is None else str(scene_num),
                page_num=int(data["pageNum"]),
                vfx=vfx,
            )
        if token_type is TokenType.PAGE_BREAK:
            return PageBreak(page_num=int(data["pageNum"]))
        if token_type is TokenType.CHARACTER:
            return Character(
                text=data["text"],
                character=data.get("character", data["text"]),
                dual=bool(data.get("dual", False)),
                vfx=vfx,
            )
        if token_type is TokenType.DIALOGUE_BEGIN:
            return DialogueBegin()
        if token_type is TokenType.DIALOGUE_END:
            return DialogueEnd()
    except KeyError as e:
        raise InvalidInputError(
            message=f"Token of type '{token_type.value}' is missing field {e}",
            details={"token": data},
        ) from e

    if "text" not in data:
        raise InvalidInputError(
            message=f"Token of type '{token_type.value}' is missing field 'text'",
            details={"token": data},
        )
    cls = TOKEN_CLASSES[token_type]
    return cls(text=data["text"], vfx=vfx)  # type: ignore[no-any-return]
