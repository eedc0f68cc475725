"""Tests for the line classifier and the script parser."""

import pytest

from scriptbreakdown.exceptions import InvalidInputError, ParseLineError
from scriptbreakdown.parser import (
    Action,
    Character,
    Dialogue,
    DialogueBegin,
    DialogueEnd,
    EntityType,
    PageBreak,
    Parenthetical,
    SceneHeading,
    ScriptParser,
    Transition,
    VfxTag,
    classify_line,
    parse_script,
    parse_script_sync,
)
from scriptbreakdown.parser.patterns import LineKind, PatternLibrary
from scriptbreakdown.parser.script_parser import extract_annotations


class TestExtractAnnotations:
    """Test annotation stripping on single lines."""

    def test_vfx_and_inline(self):
        result = extract_annotations(
            "He lifts the **lamp**[[prop]]. [[vfx 2 mid]]", PatternLibrary()
        )
        assert result.text == "He lifts the lamp."
        assert result.vfx == VfxTag("mid", "2")
        assert result.mentions == [("lamp", "prop")]
        assert not result.annotation_only

    def test_declaration_only_line(self):
        result = extract_annotations("[[char JOHN, MARY]]", PatternLibrary())
        assert result.text == ""
        assert result.declarations == [("JOHN", "char"), ("MARY", "char")]
        assert result.annotation_only

    def test_unknown_level_is_ignored(self):
        result = extract_annotations("Smoke. [[vfx legendary]]", PatternLibrary())
        assert result.vfx is None
        assert result.text == "Smoke."

    def test_plain_line_untouched(self):
        line = "          Indented dialogue"
        assert extract_annotations(line, PatternLibrary()).text == line


class TestClassifyLine:
    """Test single-line classification."""

    def test_forced_action_beats_heading(self):
        line = classify_line("!INT. NOT A HEADING")
        assert line.kind is LineKind.FORCED_ACTION
        assert line.text == "INT. NOT A HEADING"

    def test_heading_fields(self):
        line = classify_line("#4# ext. beach - dawn")
        assert line.kind is LineKind.SCENE_HEADING
        assert line.setting == "EXT."
        assert line.text == "beach - dawn"
        assert line.scene_marker == "4"

    def test_cue_needs_context(self):
        isolated = classify_line("HELLO", after_blank=True, next_blank=True)
        assert isolated.kind is LineKind.ACTION
        cue = classify_line("HELLO", after_blank=True, next_blank=False)
        assert cue.kind is LineKind.CHARACTER

    def test_indent_jump_makes_cue(self):
        line = classify_line(
            "               JOHN (V.O.)", previous_indent=0, after_blank=False
        )
        assert line.kind is LineKind.CHARACTER
        assert line.character == "JOHN"
        assert line.text == "JOHN (V.O.)"
        assert line.indent_jump and line.rightward

    def test_forced_and_dual_cue(self):
        line = classify_line("@McCLANE ^", after_blank=False)
        assert line.kind is LineKind.CHARACTER
        assert line.forced_cue
        assert line.dual
        assert line.text == "McCLANE"

    def test_forced_transition(self):
        line = classify_line("< MATCH CUT")
        assert line.kind is LineKind.TRANSITION
        assert line.text == "MATCH CUT"

    def test_page_break_marker(self):
        line = classify_line("=========== 14")
        assert line.kind is LineKind.PAGE_BREAK
        assert line.page_marker == 14

    def test_control_characters_raise(self):
        with pytest.raises(ParseLineError) as exc_info:
            classify_line("bad\x01line", line_number=7)
        assert exc_info.value.line_number == 7


class TestScriptParser:
    """Test whole-script parsing."""

    def test_sample_tokens(self, sample_text):
        result = ScriptParser().parse(sample_text)
        assert result.tokens == [
            SceneHeading("KITCHEN - NIGHT", "1", 1, setting="INT."),
            Action("JOHN enters with a knife.\n", vfx=VfxTag("hard", "1")),
            DialogueBegin(),
            Character("JOHN", "JOHN"),
            Dialogue("Where is everyone?\n"),
            Parenthetical("(beat)"),
            Dialogue("Hello?\n"),
            DialogueEnd(),
            SceneHeading("GARDEN - DAY", "5", 1, setting="EXT."),
            Action("MARY waits by the gate.\n"),
            Transition("CUT TO:"),
        ]

    def test_sample_entities(self, sample_text):
        entities = ScriptParser().parse(sample_text).entities
        assert entities.keys() == ["KNIFE", "JOHN"]
        assert entities["knife"].type is EntityType.PROP
        assert entities["knife"].count == 1
        assert entities["JOHN"].type is EntityType.CHAR
        assert entities["JOHN"].count == 1

    def test_end_to_end_scene_with_page_break(self):
        text = "INT. HOUSE - DAY\n\nJOHN\nHello there.\n\n===                              2\n"
        result = ScriptParser().parse(text)
        assert result.to_dict() == {
            "tokens": [
                {
                    "type": "scene-heading",
                    "text": "HOUSE - DAY",
                    "sceneNum": "1",
                    "pageNum": 1,
                    "setting": "INT.",
                },
                {"type": "dialogue-begin"},
                {"type": "character", "text": "JOHN", "character": "JOHN", "dual": False},
                {"type": "dialogue", "text": "Hello there.\n"},
                {"type": "dialogue-end"},
                {"type": "page-break", "pageNum": 2},
            ],
            "entities": {"JOHN": {"type": "char", "name": "JOHN", "count": 1}},
        }

    def test_all_caps_sentence_stays_action(self):
        text = "INT. A\n\nTHE DOOR SLAMS.\nEveryone jumps.\n"
        tokens = ScriptParser().parse(text).tokens
        assert tokens[1:] == [Action("THE DOOR SLAMS.\nEveryone jumps.\n")]

    def test_indented_cue_may_end_with_period(self):
        text = "INT. A\n\n               DR. WU.\n          Sit.\n"
        tokens = ScriptParser().parse(text).tokens
        assert tokens[2] == Character("DR. WU.", "DR. WU.")

    def test_inline_mention_and_later_mentions_on_same_line(self):
        text = "INT. HOUSE - DAY\n\nA **lamp**[[prop]] and another lamp glow.\n"
        entities = ScriptParser().parse(text).entities
        assert entities["LAMP"].count == 2

    def test_entity_counts_never_decrease(self, sample_text):
        lines = sample_text.split("\n")
        previous: dict[str, int] = {}
        for end in range(1, len(lines) + 1):
            prefix = "\n".join(lines[:end])
            if not prefix.strip():
                continue
            entities = ScriptParser().parse(prefix).entities
            counts = {entity.key: entity.count for entity in entities}
            assert all(count >= 0 for count in counts.values())
            for key, count in previous.items():
                assert counts.get(key, 0) >= count
            previous = counts

    def test_declared_entities_are_counted(self):
        text = "[[prop LAMP]]\n\nThe lamp flickers. Another LAMP glows.\n"
        entities = ScriptParser().parse(text).entities
        assert entities["LAMP"].count == 2
        assert entities["LAMP"].type is EntityType.PROP

    def test_declaration_keeps_first_type(self):
        text = "[[char ROCKY]]\n[[prop ROCKY]]\n\nROCKY runs.\n"
        entities = ScriptParser().parse(text).entities
        assert entities["ROCKY"].type is EntityType.CHAR

    def test_malformed_line_is_skipped(self):
        text = "INT. ROOM - DAY\n\nGood line.\n\nBad\x02line.\n\nAnother good line.\n"
        tokens = ScriptParser().parse(text).tokens
        assert Action("Good line.\n") in tokens
        assert Action("Another good line.\n") in tokens
        assert all("Bad" not in getattr(token, "text", "") for token in tokens)

    def test_ocr_page_separator(self):
        text = "One.\n\n===========\n\nTwo.\n\n=========== 5\n\nThree.\n"
        tokens = ScriptParser().parse(text).tokens
        assert [t for t in tokens if isinstance(t, PageBreak)] == [
            PageBreak(2),
            PageBreak(5),
        ]

    def test_page_number_lines_are_dropped(self):
        text = "One.\n\n12.\n\nTwo.\n"
        assert ScriptParser().parse(text).tokens == [Action("One.\n"), Action("Two.\n")]

    def test_custom_levels(self):
        parser = ScriptParser(levels=["simple", "complex"])
        tokens = parser.parse("Dust. [[vfx 3 complex]]\n").tokens
        assert tokens == [Action("Dust.\n", vfx=VfxTag("complex", "3"))]

    @pytest.mark.parametrize("value", [None, "", "   \n\n", 42])
    def test_invalid_input(self, value):
        with pytest.raises(InvalidInputError):
            ScriptParser().parse(value)

    def test_parse_result_to_dict(self, sample_text):
        data = ScriptParser().parse(sample_text).to_dict()
        assert data["tokens"][0]["type"] == "scene-heading"
        assert data["tokens"][0]["sceneNum"] == "1"
        assert data["entities"]["KNIFE"] == {"type": "prop", "name": "knife", "count": 1}


@pytest.mark.asyncio
async def test_parse_script_matches_sync(sample_text):
    result = await parse_script(sample_text)
    assert result == parse_script_sync(sample_text)
