"""
Tests for logging setup.
"""

import logging

import pytest
from rich.logging import RichHandler

from reportsync.utils.logging import (
    ROOT_LOGGER_NAME,
    ConsoleFormatter,
    FileFormatter,
    _parse_level,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestParseLevel:
    @pytest.mark.parametrize(
        "value,expected",
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), (logging.ERROR, logging.ERROR), ("verbose", logging.INFO)],
    )
    def test_parse(self, value, expected):
        assert _parse_level(value) == expected


class TestSetupLogging:
    """Tests for setup_logging and setup_logging_from_config."""

    def test_rich_console_handler(self):
        logger = setup_logging("DEBUG")
        assert logger.name == ROOT_LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_plain_console_handler(self):
        logger = setup_logging("INFO", use_rich=False)
        (handler,) = logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert isinstance(handler.formatter, ConsoleFormatter)

    def test_repeated_setup_replaces_handlers(self):
        setup_logging(use_rich=False)
        logger = setup_logging(use_rich=False)
        assert len(logger.handlers) == 1

    def test_file_log(self, tmp_path):
        log_file = tmp_path / "logs" / "sync.log"
        setup_logging("INFO", log_file=log_file, console_enabled=False)

        get_logger("reportsync.sync.orchestrator").info("Processing a.json")
        get_logger("reportsync.sync.orchestrator").debug("hidden")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        content = log_file.read_text()
        assert "[INFO    ] reportsync.sync.orchestrator: Processing a.json" in content
        assert "hidden" not in content

    def test_from_config_relative_file(self, tmp_path):
        logger = setup_logging_from_config(
            {"logging": {"level": "WARNING", "file": "out/run.log", "console_enabled": False}}, tmp_path
        )
        (handler,) = logger.handlers
        assert isinstance(handler, logging.FileHandler)
        assert isinstance(handler.formatter, FileFormatter)
        assert handler.baseFilename == str(tmp_path / "out" / "run.log")
        assert logger.level == logging.WARNING

    def test_from_config_level_override(self, tmp_path):
        logger = setup_logging_from_config(
            {"logging": {"level": "ERROR", "file_enabled": False, "console_type": "plain"}},
            tmp_path,
            level_override="DEBUG",
        )
        assert logger.level == logging.DEBUG
        assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_default_log_file(self, tmp_path):
        logger = setup_logging_from_config({}, tmp_path)
        files = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert files[0].baseFilename == str(tmp_path / "logs" / "reportsync.log")


class TestFormatters:
    def test_console_formatter_adds_location_for_errors(self):
        record = logging.LogRecord("reportsync", logging.ERROR, "/src/reportsync/sync/uploader.py", 42, "failed", None, None)
        text = ConsoleFormatter().format(record)
        assert text.startswith("ERROR: ")
        assert "uploader.py:42 - failed" in text

    def test_console_formatter_info(self):
        record = logging.LogRecord("reportsync", logging.INFO, "/x.py", 1, "hello", None, None)
        assert ConsoleFormatter().format(record).endswith(" - hello")
