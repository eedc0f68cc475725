"""Tests for the raw text serializer."""

import pytest

from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.export import RawSerializer, tokens_to_raw, write_tokens
from scriptbreakdown.parser import (
    Action,
    Centered,
    Character,
    Dialogue,
    DialogueBegin,
    DialogueEnd,
    EntityRegistry,
    PageBreak,
    SceneHeading,
    ScriptParser,
    Transition,
    VfxTag,
)


class TestRenderToken:
    """Test the column layout of single tokens."""

    def test_heading_with_number(self):
        lines = RawSerializer().render_token(SceneHeading("HOUSE - DAY", "12", 1, "INT."))
        assert lines[0] == "INT. HOUSE - DAY".ljust(70) + "#12#".rjust(10)
        assert lines[1] == ""

    def test_forced_heading(self):
        lines = RawSerializer().render_token(SceneHeading("LIMBO", "3", 1))
        assert lines[0].startswith(".LIMBO ")
        assert lines[0].endswith("#3#")

    def test_page_break(self):
        assert RawSerializer().render_token(PageBreak(7)) == ["=" * 74 + "     7", ""]

    def test_cue_and_dialogue_indents(self):
        serializer = RawSerializer()
        assert serializer.render_token(Character("JOHN", "JOHN")) == [" " * 15 + "JOHN"]
        assert serializer.render_token(Dialogue("Hi.\nBye.\n")) == [
            " " * 10 + "Hi.",
            " " * 10 + "Bye.",
        ]

    def test_unnatural_cue_is_forced(self):
        lines = RawSerializer().render_token(Character("McCoy", "McCoy"))
        assert lines == [" " * 15 + "@McCoy"]

    def test_dual_cue(self):
        lines = RawSerializer().render_token(Character("ANNA", "ANNA", dual=True))
        assert lines == [" " * 15 + "ANNA^"]

    @pytest.mark.parametrize(
        "text",
        ["INT. LOOKS LIKE A HEADING", "CUT TO:", "SHOUTING", "  indented", "!bang"],
    )
    def test_ambiguous_action_is_forced(self, text):
        lines = RawSerializer().render_token(Action(text + "\n"))
        assert lines[0] == "!" + text

    def test_plain_action(self):
        assert RawSerializer().render_token(Action("He sits.\n")) == ["He sits.", ""]

    def test_vfx_marker_only_when_annotated(self):
        token = Action("Boom.\n", vfx=VfxTag("hard", "2"))
        assert RawSerializer(clean=True).render_token(token)[0] == "Boom."
        annotated = RawSerializer(clean=False).render_token(token)[0]
        assert annotated == "Boom.".ljust(80) + " [[vfx 2 hard]]"

    def test_transition_forms(self):
        serializer = RawSerializer()
        assert serializer.render_token(Transition("CUT TO:"))[0] == "CUT TO:"
        assert serializer.render_token(Transition("MATCH CUT"))[0] == "< MATCH CUT"
        assert serializer.render_token(Centered("THE END"))[0] == "> THE END <"


class TestSerialize:
    """Test whole-script serialization."""

    def test_sample_clean(self, sample_text):
        result = ScriptParser().parse(sample_text)
        raw = tokens_to_raw(result.tokens, result.entities)
        lines = raw.split("\n")
        assert lines[0].startswith("INT. KITCHEN - NIGHT")
        assert lines[0].endswith("#1#")
        assert lines[1:9] == [
            "",
            "JOHN enters with a knife.",
            "",
            " " * 15 + "JOHN",
            " " * 10 + "Where is everyone?",
            " " * 10 + "(beat)",
            " " * 10 + "Hello?",
            "",
        ]
        assert lines[-3:] == ["", "CUT TO:", ""]
        assert "[[" not in raw

    def test_declarations_grouped(self):
        registry = EntityRegistry()
        for name in ("A", "B", "C"):
            registry.mention(name, "char")
        registry.mention("LAMP", "prop", 4)
        lines = RawSerializer(clean=False, group_size=2).declarations(registry)
        assert lines == ["[[prop LAMP]]", "[[char A, B]]", "[[char C]]"]

    def test_no_double_blank_lines(self):
        tokens = [
            DialogueBegin(),
            Character("JO", "JO"),
            Dialogue("Hey.\n"),
            DialogueEnd(),
            Action("Then.\n"),
            PageBreak(2),
        ]
        raw = tokens_to_raw(tokens)
        assert "\n\n\n" not in raw
        assert raw.endswith("     2\n")

    def test_annotated_output_reparses(self, sample_text):
        result = ScriptParser().parse(sample_text)
        raw = tokens_to_raw(result.tokens, result.entities, clean=False)
        assert raw.startswith("[[char JOHN]]\n[[prop knife]]\n\n")
        again = ScriptParser().parse(raw)
        assert again.tokens == result.tokens
        assert set(again.entities.keys()) == set(result.entities.keys())


class TestWriteTokens:
    """Test writing raw text to disk."""

    def test_writes_file(self, tmp_path, sample_text):
        result = ScriptParser().parse(sample_text)
        path = write_tokens(result.tokens, result.entities, tmp_path / "out" / "raw.txt")
        assert path.read_text(encoding="utf-8").startswith("INT. KITCHEN")

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_tokens([Action("x\n")], None, blocker / "raw.txt")
