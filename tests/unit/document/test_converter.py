"""Tests for token/document conversion."""

import asyncio
import time

import pytest

from scriptbreakdown.document import (
    Block,
    BlockKind,
    Document,
    InlineSpan,
    SpanKind,
    document_to_tokens,
    document_to_tokens_async,
    tokens_to_document,
    tokens_to_document_async,
)
from scriptbreakdown.document import converter
from scriptbreakdown.document.models import (
    ATTR_CHARACTER,
    ATTR_SCENE_NUMBER,
    ATTR_SETTING,
    ATTR_SHOT_NUMBER,
    ATTR_VFX_LEVEL,
)
from scriptbreakdown.exceptions import ConversionTimeoutError, InvalidInputError
from scriptbreakdown.parser import (
    Action,
    Character,
    Dialogue,
    DialogueBegin,
    DialogueEnd,
    EntityRegistry,
    SceneHeading,
    ScriptParser,
    VfxTag,
)


def text_block(kind: BlockKind, text: str, **attrs) -> Block:
    return Block(kind, [InlineSpan(SpanKind.TEXT, text)], attrs)


class TestTokensToDocument:
    """Test rendering tokens as blocks."""

    def test_sample_blocks(self, sample_text):
        result = ScriptParser().parse(sample_text)
        document = tokens_to_document(result.tokens, result.entities)
        kinds = [block.kind for block in document.blocks]
        assert kinds == [
            BlockKind.SCENE_HEADING,
            BlockKind.BLANK,
            BlockKind.ACTION,
            BlockKind.BLANK,
            BlockKind.CHARACTER,
            BlockKind.DIALOGUE,
            BlockKind.PARENTHETICAL,
            BlockKind.DIALOGUE,
            BlockKind.BLANK,
            BlockKind.SCENE_HEADING,
            BlockKind.BLANK,
            BlockKind.ACTION,
            BlockKind.BLANK,
            BlockKind.TRANSITION,
            BlockKind.BLANK,
        ]

    def test_heading_attributes(self, sample_text):
        result = ScriptParser().parse(sample_text)
        heading = tokens_to_document(result.tokens, result.entities).blocks[0]
        assert heading.attrs[ATTR_SCENE_NUMBER] == "1"
        assert heading.attrs[ATTR_SETTING] == "INT."
        assert heading.text == "KITCHEN - NIGHT"

    def test_entity_marks(self, sample_text):
        result = ScriptParser().parse(sample_text)
        action = tokens_to_document(result.tokens, result.entities).blocks[2]
        assert [(m.text, m.category) for m in action.marks] == [
            ("JOHN", "char"),
            ("knife", "prop"),
        ]
        assert action.text == "JOHN enters with a knife."
        assert action.attrs[ATTR_VFX_LEVEL] == "hard"
        assert action.attrs[ATTR_SHOT_NUMBER] == "1"

    def test_multiline_action_is_one_block_per_line(self):
        document = tokens_to_document([Action("One.\nTwo.\n", vfx=VfxTag("easy"))])
        lines = [b for b in document.blocks if b.kind is BlockKind.ACTION]
        assert [b.text for b in lines] == ["One.", "Two."]
        assert all(b.attrs[ATTR_VFX_LEVEL] == "easy" for b in lines)

    def test_unknown_vfx_level_dropped(self):
        document = tokens_to_document(
            [Action("Boom.\n", vfx=VfxTag("insane"))], levels=["easy"]
        )
        assert ATTR_VFX_LEVEL not in document.blocks[0].attrs

    def test_unmentioned_entities_are_declared(self):
        registry = EntityRegistry()
        registry.declare("LAMP", "prop")
        document = tokens_to_document([Action("Dark.\n")], registry)
        assert document.blocks[0].kind is BlockKind.DECLARATION
        assert document.blocks[0].text == "[[prop LAMP]]"

    def test_notes_become_note_spans(self):
        document = tokens_to_document([Action("Door [[check hinge]] opens.\n")])
        block = document.blocks[0]
        assert [n.text for n in block.notes] == ["check hinge"]
        assert block.text == "Door [[check hinge]] opens."

    def test_none_tokens(self):
        with pytest.raises(InvalidInputError):
            tokens_to_document(None)


class TestDocumentToTokens:
    """Test walking blocks back into tokens."""

    def test_round_trip(self, sample_text):
        result = ScriptParser().parse(sample_text)
        back = document_to_tokens(tokens_to_document(result.tokens, result.entities))
        assert back.tokens == result.tokens
        assert set(back.entities.keys()) == set(result.entities.keys())

    def test_consecutive_blocks_coalesce_with_vfx_merge(self):
        document = Document(
            [
                text_block(BlockKind.ACTION, "One.", vfx_level="easy", shot_number="2"),
                text_block(BlockKind.ACTION, "Two.", vfx_level="hard"),
            ]
        )
        assert document_to_tokens(document).tokens == [
            Action("One.\nTwo.\n", vfx=VfxTag("hard", "2"))
        ]

    def test_typed_heading_gets_setting_and_number(self):
        document = Document(
            [
                text_block(BlockKind.SCENE_HEADING, "INT. LAB - NIGHT"),
                text_block(BlockKind.SCENE_HEADING, "EXT. ROOF", scene_number="2"),
                text_block(BlockKind.SCENE_HEADING, ".LIMBO"),
            ]
        )
        tokens = document_to_tokens(document).tokens
        assert tokens == [
            SceneHeading("LAB - NIGHT", "1", 1, setting="INT."),
            SceneHeading("ROOF", "2", 1, setting="EXT."),
            SceneHeading("LIMBO", "3", 1),
        ]

    def test_missing_number_avoids_later_explicit_number(self):
        document = Document(
            [
                text_block(BlockKind.SCENE_HEADING, "A", scene_number="4", setting="INT."),
                text_block(BlockKind.SCENE_HEADING, "B", setting="INT."),
                text_block(BlockKind.SCENE_HEADING, "C", scene_number="5", setting="INT."),
            ]
        )
        numbers = [t.scene_num for t in document_to_tokens(document).tokens]
        assert numbers == ["4", "4A", "5"]

    def test_dialogue_group(self):
        document = Document(
            [
                text_block(BlockKind.CHARACTER, "ANNA ^"),
                text_block(BlockKind.DIALOGUE, "Now."),
                Block(BlockKind.BLANK),
                text_block(BlockKind.ACTION, "She runs."),
            ]
        )
        assert document_to_tokens(document).tokens == [
            DialogueBegin(),
            Character("ANNA", "ANNA", dual=True),
            Dialogue("Now.\n"),
            DialogueEnd(),
            Action("She runs.\n"),
        ]

    def test_character_attribute_wins(self):
        block = text_block(BlockKind.CHARACTER, "THE MAN", character="JOE", dual=False)
        tokens = document_to_tokens(Document([block])).tokens
        assert tokens[1] == Character("THE MAN", "JOE")
        assert block.attrs[ATTR_CHARACTER] == "JOE"

    def test_marks_rebuild_registry(self):
        block = Block(
            BlockKind.ACTION,
            [
                InlineSpan(SpanKind.MARK, "Rex", "char"),
                InlineSpan(SpanKind.TEXT, " grabs the "),
                InlineSpan(SpanKind.MARK, "rope", "prop"),
            ],
        )
        entities = document_to_tokens(Document([block])).entities
        assert entities["REX"].count == 1
        assert entities["ROPE"].type.value == "prop"

    def test_entity_display_names_survive(self):
        result = ScriptParser().parse(
            "[[char John]]\nINT. HOUSE - DAY\n\nJOHN\nHello there.\n"
        )
        back = document_to_tokens(tokens_to_document(result.tokens, result.entities))
        assert back.tokens == result.tokens
        assert back.entities == result.entities
        assert back.entities["JOHN"].name == "John"

    def test_inline_and_plain_mentions_count_alike(self):
        result = ScriptParser().parse(
            "INT. HOUSE - DAY\n\nA **lamp**[[prop]] and another lamp glow.\n"
        )
        back = document_to_tokens(tokens_to_document(result.tokens, result.entities))
        assert back.entities == result.entities
        assert back.entities["LAMP"].count == 2

    def test_none_document(self):
        with pytest.raises(InvalidInputError):
            document_to_tokens(None)


class TestAsyncConversion:
    """Test time-bounded conversion in a worker thread."""

    async def test_async_matches_sync(self, sample_text):
        result = ScriptParser().parse(sample_text)
        document = await tokens_to_document_async(result.tokens, result.entities)
        back = await document_to_tokens_async(document)
        assert back.tokens == result.tokens

    async def test_timeout_raises(self, monkeypatch):
        def slow(*args, **kwargs):
            time.sleep(0.5)
            return Document()

        monkeypatch.setattr(converter, "tokens_to_document", slow)
        with pytest.raises(ConversionTimeoutError) as exc_info:
            await tokens_to_document_async([], timeout=0.05)
        assert exc_info.value.operation == "tokens_to_document"

    async def test_event_loop_stays_responsive(self, sample_text):
        result = ScriptParser().parse(sample_text)
        ticks = []

        async def ticker():
            for _ in range(3):
                ticks.append(1)
                await asyncio.sleep(0)

        await asyncio.gather(
            ticker(), tokens_to_document_async(result.tokens, result.entities)
        )
        assert len(ticks) == 3
