"""Tests for the logging configuration module."""

import logging

import pytest

from scriptbreakdown.config import BreakdownSettings, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Restore root logger handlers after each test."""
    root_logger = logging.getLogger()
    original_level = root_logger.level
    original_handlers = root_logger.handlers.copy()

    yield

    root_logger.setLevel(original_level)
    for handler in root_logger.handlers.copy():
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)


class TestConfigureLogging:
    """Test configure_logging."""

    @pytest.mark.parametrize(
        ("level_str", "level_const"),
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
        ],
    )
    def test_levels(self, level_str, level_const):
        configure_logging(BreakdownSettings(log_level=level_str))
        assert logging.getLogger().level == level_const

    @pytest.mark.parametrize("log_format", ["console", "json", "structured"])
    def test_formats(self, log_format):
        configure_logging(BreakdownSettings(log_format=log_format))
        get_logger("test").warning("Formatted", fmt=log_format)

    def test_invalid_level(self):
        settings = BreakdownSettings.model_construct(
            log_level="LOUD", log_format="console", log_file=None, debug=False
        )
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(settings)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "breakdown.log"
        configure_logging(BreakdownSettings(log_level="INFO", log_file=log_file))
        get_logger("file-test").info("Written to file", answer=42)
        for handler in logging.getLogger().handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "Written to file" in content

    def test_debug_adds_callsite(self, tmp_path):
        log_file = tmp_path / "debug.log"
        configure_logging(
            BreakdownSettings(log_level="DEBUG", debug=True, log_file=log_file)
        )
        get_logger("callsite-test").debug("Where am I")
        for handler in logging.getLogger().handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "test_debug_adds_callsite" in content
