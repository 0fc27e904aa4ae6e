"""
Tests for observability — logging setup.
"""

import logging
from pathlib import Path

import pytest

from bussin.core.observability.logging_config import _parse_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    def test_console_only(self, restore_root_logger):
        setup_logging(level="INFO")
        root = restore_root_logger
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == "[*] %(message)s"

    def test_debug_format(self, restore_root_logger):
        setup_logging(level="DEBUG")
        assert "%(lineno)d" in restore_root_logger.handlers[0].formatter._fmt

    def test_file_handler(self, restore_root_logger, tmp_path: Path):
        log_file = tmp_path / "bussin.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="INFO")
        root = restore_root_logger

        assert root.level == logging.INFO
        assert len(root.handlers) == 2

        logging.getLogger("bussin.test").info("Installing rg...")
        for handler in root.handlers:
            handler.flush()
        content = log_file.read_text()
        assert "Installing rg..." in content
        assert content.startswith("[")

    def test_unopenable_log_file(self, restore_root_logger, tmp_path: Path):
        setup_logging(level="WARNING", log_file=str(tmp_path))
        assert len(restore_root_logger.handlers) == 1

    def test_replaces_previous_handlers(self, restore_root_logger):
        setup_logging(level="INFO")
        setup_logging(level="INFO")
        assert len(restore_root_logger.handlers) == 1


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("loud") == logging.WARNING
        assert _parse_level("", default=logging.INFO) == logging.INFO
