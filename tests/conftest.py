"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from scriptbreakdown.config import BreakdownSettings, reset_settings, set_settings

# Import CLI fixtures to make them available globally
from tests.cli_fixtures import clean_runner, cli_invoke  # noqa: F401

SAMPLE_SCRIPT = """\
INT. KITCHEN - NIGHT

JOHN enters with a **knife**[[prop]]. [[vfx 1 hard]]

               JOHN
          Where is everyone?
          (beat)
          Hello?

EXT. GARDEN - DAY #5#

MARY waits by the gate.

CUT TO:
"""


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test against fresh settings and a private export directory.

    Environment variables set by CLI flags (``--debug``) are removed so they
    cannot leak into the next test.
    """
    for var in ("BREAKDOWN_LOG_LEVEL", "BREAKDOWN_DEBUG", "BREAKDOWN_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)

    reset_settings()
    set_settings(BreakdownSettings(export_dir=tmp_path / "exports"))

    yield

    reset_settings()


@pytest.fixture
def sample_text() -> str:
    """A short two-scene script with annotations and a dialogue block."""
    return SAMPLE_SCRIPT


@pytest.fixture
def sample_script(tmp_path) -> Path:
    """The sample script written to a file."""
    path = tmp_path / "kitchen.txt"
    path.write_text(SAMPLE_SCRIPT, encoding="utf-8")
    return path
