"""Tests for breakdown row generation."""

import pytest

from scriptbreakdown.export import ExportRowGenerator, build_headers, profile_scenes
from scriptbreakdown.export.rows import clean_text
from scriptbreakdown.parser import (
    Action,
    EntityRegistry,
    PageBreak,
    SceneHeading,
    Transition,
    ScriptParser,
)


@pytest.fixture
def parsed(sample_text):
    return ScriptParser().parse(sample_text)


class TestHeaders:
    """Test column descriptors."""

    def test_header_order(self, parsed):
        headers = build_headers(parsed.entities, (14, 20))
        assert [h.id for h in headers] == [
            "page",
            "scene",
            "sceneDescr",
            "description",
            "text",
            "length",
            "lengthDec",
            "shotCount14",
            "shotCount20",
            "difficulty",
            "shotNumber",
            "notes",
            "entity_KNIFE",
            "entity_JOHN",
        ]
        assert headers[7].title == "Shots @14/pg"
        assert headers[-2].title == "knife"


class TestRows:
    """Test scene and block rows for the sample script."""

    def test_full_rows(self, parsed):
        rows = ExportRowGenerator().generate(parsed.tokens, parsed.entities)
        assert len(rows) == 7
        assert [row["text"] for row in rows] == [
            "",
            "JOHN enters with a knife.",
            "JOHN: Where is everyone?",
            "(beat) Hello?",
            "",
            "MARY waits by the gate.",
            "CUT TO:",
        ]

    def test_scene_row(self, parsed):
        scene = ExportRowGenerator().generate(parsed.tokens, parsed.entities)[0]
        assert scene["page"] == 1
        assert scene["scene"] == "1"
        assert scene["sceneDescr"] == "INT. KITCHEN - NIGHT"
        assert scene["length"] == "5/8"
        assert scene["lengthDec"] == pytest.approx(0.625)
        assert (scene["shotCount14"], scene["shotCount20"], scene["shotCount24"]) == (
            9,
            13,
            15,
        )
        assert scene["entity_JOHN"] == 2
        assert scene["entity_KNIFE"] == 1

    def test_block_rows(self, parsed):
        rows = ExportRowGenerator().generate(parsed.tokens, parsed.entities)
        action, first_line = rows[1], rows[2]
        assert action["description"] == "INT. KITCHEN - NIGHT"
        assert action["length"] == "1/4"
        assert action["difficulty"] == "hard"
        assert action["shotNumber"] == "1"
        assert action["entity_KNIFE"] == 1
        assert action["entity_JOHN"] == 1
        assert first_line["length"] == "3/16"
        assert first_line["difficulty"] == ""
        assert first_line["entity_KNIFE"] == ""

    def test_trailing_transition_gets_own_row(self, parsed):
        rows = ExportRowGenerator().generate(parsed.tokens, parsed.entities)
        last = rows[-1]
        assert last["text"] == "CUT TO:"
        assert last["scene"] == "5"
        assert last["description"] == "EXT. GARDEN - DAY"
        assert last["length"] == "1/8"

    def test_block_lengths_fill_the_page(self):
        tokens = [
            SceneHeading("A", "1", 1),
            Action("Walk.\n"),
            Transition("CUT TO:"),
        ]
        rows = ExportRowGenerator().generate(tokens, EntityRegistry())
        blocks = [r for r in rows if r["text"]]
        assert [r["text"] for r in blocks] == ["Walk.", "CUT TO:"]
        assert [r["length"] for r in blocks] == ["21/32", "11/32"]
        assert sum(r["lengthDec"] for r in blocks) == pytest.approx(1.0)
        assert rows[0]["length"] == "1"

    def test_pending_transition_closes_at_page_break(self):
        tokens = [
            SceneHeading("A", "1", 1),
            Action("Walk.\n"),
            Transition("CUT TO:"),
            PageBreak(2),
            Action("Run.\n"),
        ]
        rows = ExportRowGenerator().generate(tokens, EntityRegistry())
        assert [(r["page"], r["text"]) for r in rows] == [
            (1, ""),
            (1, "Walk."),
            (1, "CUT TO:"),
            (2, "Run."),
        ]
        assert rows[-1]["length"] == "1"

    def test_vfx_only(self, parsed):
        rows = ExportRowGenerator().generate(parsed.tokens, parsed.entities, full=False)
        assert [row["scene"] for row in rows] == ["1", "1", "5"]
        assert rows[1]["difficulty"] == "hard"

    def test_second_scene(self, parsed):
        rows = ExportRowGenerator().generate(parsed.tokens, parsed.entities)
        assert rows[4]["scene"] == "5"
        assert rows[4]["length"] == "3/8"
        assert rows[5]["description"] == "EXT. GARDEN - DAY"

    def test_page_shots_add_up(self):
        tokens = [
            SceneHeading("A", "1", 1),
            Action("one\n"),
            Action("two\nthree\n"),
            Action("four\n"),
            PageBreak(2),
            Action("five\n"),
        ]
        generator = ExportRowGenerator(shots_per_page=(20,))
        rows = generator.generate(tokens, EntityRegistry())
        page_one = [r for r in rows if r["page"] == 1 and r["text"]]
        assert sum(r["shotCount20"] for r in page_one) == 20
        page_two = [r for r in rows if r["page"] == 2]
        assert [r["shotCount20"] for r in page_two] == [20]

    def test_notes_column(self):
        tokens = [Action("Door [[fix hinge]] opens. [[loud]]\n")]
        row = ExportRowGenerator().generate(tokens, EntityRegistry())[0]
        assert row["text"] == "Door opens."
        assert row["notes"] == "fix hinge\nloud"


class TestHelpers:
    """Test row helper functions."""

    def test_clean_text(self):
        assert clean_text("A  **Lamp**[[prop]]\n glows [[n]]") == "A Lamp glows"

    def test_profile_prologue_only_when_present(self, parsed):
        profiles = profile_scenes(parsed.tokens, parsed.entities)
        assert set(profiles) == {"1", "5"}
        tokens = [Action("JOHN waits.\n"), *parsed.tokens]
        assert profile_scenes(tokens, parsed.entities)[""]["JOHN"] == 1
