"""Entity registry built during a parse or conversion pass."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from scriptbreakdown.exceptions import InvalidInputError


class EntityType(str, Enum):
    """Entity categories."""

    CHAR = "char"
    PROP = "prop"
    ENV = "env"
    FX = "fx"


@dataclass
class Entity:
    """A named character, prop, environment or effect."""

    type: EntityType
    name: str
    count: int = 0

    @property
    def key(self) -> str:
        return entity_key(self.name)


def entity_key(name: str) -> str:
    """Registry key for a name: trimmed and upper-cased."""
    return name.strip().upper()


def whole_word_pattern(name: str) -> re.Pattern[str]:
    """Case-insensitive whole-word matcher for an entity name."""
    return re.compile(rf"(?<!\w){re.escape(name.strip())}(?!\w)", re.IGNORECASE)


class EntityRegistry:
    """Mapping from normalized entity name to entity.

    Counts only ever go up. The registry belongs to a single pass and is
    rebuilt, never merged, on the next full parse.
    """

    def __init__(self) -> None:
        self._entities: dict[str, Entity] = {}
        self._patterns: dict[str, re.Pattern[str]] = {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and entity_key(name) in self._entities

    def __getitem__(self, name: str) -> Entity:
        return self._entities[entity_key(name)]

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityRegistry):
            return NotImplemented
        return self._entities == other._entities

    def __repr__(self) -> str:
        return f"EntityRegistry({self.to_dict()!r})"

    def get(self, name: str) -> Entity | None:
        return self._entities.get(entity_key(name))

    def keys(self) -> list[str]:
        return list(self._entities)

    def declare(self, name: str, entity_type: EntityType | str) -> Entity | None:
        """Register an entity without counting it.

        An existing entity keeps its category and count.
        """
        key = entity_key(name)
        if not key:
            return None
        entity = self._entities.get(key)
        if entity is None:
            entity = Entity(type=EntityType(entity_type), name=name.strip())
            self._entities[key] = entity
            self._patterns[key] = whole_word_pattern(key)
        return entity

    def mention(
        self, name: str, entity_type: EntityType | str, times: int = 1
    ) -> Entity | None:
        """Register an entity if needed and add to its count."""
        entity = self.declare(name, entity_type)
        if entity is not None and times > 0:
            entity.count += times
        return entity

    def count_occurrences(self, text: str, counted: Iterable[str] = ()) -> None:
        """Count whole-word, case-insensitive mentions of known entities.

        Args:
            text: Line or block text to scan
            counted: Names whose mentions in this text were already counted,
                one entry per mention
        """
        if not text or not self._entities:
            return
        already = Counter(entity_key(name) for name in counted)
        for key, pattern in self._patterns.items():
            hits = len(pattern.findall(text)) - already[key]
            if hits > 0:
                self._entities[key].count += hits

    def grouped(self) -> dict[EntityType, list[Entity]]:
        """Entities by category, most frequent first then by key."""
        groups: dict[EntityType, list[Entity]] = {}
        for entity in self.sorted():
            groups.setdefault(entity.type, []).append(entity)
        return groups

    def sorted(self) -> list[Entity]:
        """All entities, most frequent first then by key."""
        return sorted(self._entities.values(), key=lambda e: (-e.count, e.key))

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """JSON form ``{KEY: {type, name, count}}``."""
        return {
            key: {"type": e.type.value, "name": e.name, "count": e.count}
            for key, e in self._entities.items()
        }

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]] | None) -> EntityRegistry:
        """Rebuild a registry from its JSON form.

        Raises:
            InvalidInputError: If an entry has an unknown type or a
                negative count
        """
        registry = cls()
        for key, entry in (data or {}).items():
            try:
                entity_type = EntityType(entry["type"])
                count = int(entry.get("count", 0))
            except (KeyError, ValueError, TypeError) as e:
                raise InvalidInputError(
                    message=f"Invalid entity entry for '{key}'",
                    details={"entry": entry},
                ) from e
            if count < 0:
                raise InvalidInputError(
                    message=f"Entity '{key}' has a negative count",
                    details={"count": count},
                )
            registry.mention(entry.get("name") or key, entity_type, count)
        return registry
