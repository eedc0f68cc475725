"""Screenplay text parser for scriptbreakdown."""

from __future__ import annotations

from .entities import Entity, EntityRegistry, EntityType
from .patterns import DEFAULT_VFX_LEVELS, PatternLibrary, normalize_text
from .script_parser import (
    ParseResult,
    ScriptParser,
    classify_line,
    parse_script,
    parse_script_sync,
)
from .state_machine import BlockState, ClassifiedLine, MachineState, finish, step
from .tokens import (
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
    TokenType,
    Transition,
    VfxTag,
    token_from_dict,
    token_to_dict,
)

__all__ = [
    "DEFAULT_VFX_LEVELS",
    "Action",
    "BlockState",
    "Centered",
    "Character",
    "ClassifiedLine",
    "Dialogue",
    "DialogueBegin",
    "DialogueEnd",
    "Entity",
    "EntityRegistry",
    "EntityType",
    "Flashback",
    "MachineState",
    "PageBreak",
    "Parenthetical",
    "ParseResult",
    "PatternLibrary",
    "SceneHeading",
    "ScriptParser",
    "Token",
    "TokenType",
    "Transition",
    "VfxTag",
    "classify_line",
    "finish",
    "normalize_text",
    "parse_script",
    "parse_script_sync",
    "step",
    "token_from_dict",
    "token_to_dict",
]
