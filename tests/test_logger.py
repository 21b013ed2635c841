"""Tests for logging helpers."""

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from docpager.utils.logger import configure_logging, get_logger, set_log_level


class TestLogging:
    def test_configure_uses_rich_handler(self):
        logger = configure_logging("DEBUG", console=Console(record=True))

        assert logger.name == "docpager"
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "docpager.log"
        logger = configure_logging("INFO", str(log_file), console=Console(record=True))

        get_logger("docpager.engine.page_breaker").info("hello from the breaker")
        for handler in logger.handlers:
            handler.flush()

        assert "hello from the breaker" in log_file.read_text()

    def test_set_level(self):
        logger = configure_logging("INFO", console=Console(record=True))

        set_log_level("ERROR")

        assert logger.level == logging.ERROR
        assert all(h.level == logging.ERROR for h in logger.handlers)

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            configure_logging("LOUD")

    def test_invalid_logger_name(self):
        with pytest.raises(ValueError):
            get_logger("")
