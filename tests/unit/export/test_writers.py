"""Tests for the CSV/XLSX writers and the export bundle."""

import csv
from datetime import datetime

import pytest
from openpyxl import load_workbook

from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.export import (
    HeaderDescriptor,
    export_all,
    write_breakdown,
    write_rows,
)
from scriptbreakdown.export.bundle import timestamp
from scriptbreakdown.parser import ScriptParser

HEADERS = [HeaderDescriptor("scene", "Scene"), HeaderDescriptor("text", "Text")]
ROWS = [{"scene": "1", "text": "Hello"}, {"scene": "2", "text": "Bye"}]


class TestWriteRows:
    """Test tabular writers."""

    def test_csv(self, tmp_path):
        path = write_rows(tmp_path / "rows.csv", HEADERS, ROWS)
        with path.open(newline="", encoding="utf-8") as f:
            assert list(csv.reader(f)) == [
                ["Scene", "Text"],
                ["1", "Hello"],
                ["2", "Bye"],
            ]

    def test_xlsx(self, tmp_path):
        path = write_rows(tmp_path / "rows.xlsx", HEADERS, ROWS)
        sheet = load_workbook(path).active
        assert sheet.title == "Breakdown"
        assert [c.value for c in sheet[1]] == ["Scene", "Text"]
        assert [c.value for c in sheet[3]] == ["2", "Bye"]
        assert sheet["A1"].font.bold

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ExportError, match="format"):
            write_rows(tmp_path / "rows.pdf", HEADERS, ROWS)

    def test_unwritable(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_rows(blocker / "rows.csv", HEADERS, ROWS)


class TestWriteBreakdown:
    """Test breakdown export for a parsed script."""

    def test_full_and_vfx(self, tmp_path, sample_text):
        result = ScriptParser().parse(sample_text)
        full = write_breakdown(result.tokens, result.entities, tmp_path / "full.csv")
        vfx = write_breakdown(
            result.tokens, result.entities, tmp_path / "vfx.csv", full=False
        )
        with full.open(newline="", encoding="utf-8") as f:
            full_rows = list(csv.reader(f))
        with vfx.open(newline="", encoding="utf-8") as f:
            vfx_rows = list(csv.reader(f))
        assert full_rows[0][:3] == ["Page", "Scene", "Scene Description"]
        assert len(full_rows) == 8
        assert len(vfx_rows) == 4


class TestExportAll:
    """Test the timestamped export bundle."""

    def test_bundle_files(self, tmp_path, sample_text):
        result = ScriptParser().parse(sample_text)
        now = datetime(2024, 1, 31, 15, 45, 1)
        bundle = export_all(
            result.tokens, result.entities, "pilot", tmp_path / "exports", now=now
        )
        names = sorted(path.name for path in bundle.paths())
        assert names == [
            "pilot_20240131-154501.html",
            "pilot_20240131-154501_script-vfx.csv",
            "pilot_20240131-154501_script.csv",
            "pilot_20240131-154501_tokens.txt",
        ]
        assert all(path.exists() for path in bundle.paths())
        assert "[[vfx 1 hard]]" in bundle.raw.read_text(encoding="utf-8")
        assert 'class="scene-heading"' in bundle.html.read_text(encoding="utf-8")

    def test_timestamp(self):
        assert timestamp(datetime(2023, 5, 6, 7, 8, 9)) == "20230506-070809"
