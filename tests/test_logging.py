"""Tests for logging setup."""

import logging

import pytest

from rigsim.logging_config import LOG_FORMAT, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test root logger configuration."""

    def test_level_and_file(self, tmp_path, restore_root_logger):
        """Test level name and optional file handler."""
        log_file = tmp_path / "rigsim.log"

        setup_logging("debug", log_file)
        logging.getLogger("rigsim.test").info("hello from the pipeline")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert restore_root_logger.level == logging.DEBUG
        assert any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
        assert "[INFO] hello from the pipeline" in log_file.read_text()

    def test_stdout_only(self, restore_root_logger):
        """Test no file handler without a log file."""
        setup_logging()

        assert restore_root_logger.level == logging.INFO
        assert not any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
        assert restore_root_logger.handlers[0].formatter._fmt == LOG_FORMAT
