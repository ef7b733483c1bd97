"""Tests for logging setup."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from kicad_importer.logging_config import LOGGER_NAME, get_logger, setup_logging


class TestSetupLogging:
    def test_stream_and_level(self):
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)
        get_logger("importer").info("Imported %d symbols", 3)
        get_logger("importer").debug("hidden")
        assert stream.getvalue() == "INFO kicad_importer.importer: Imported 3 symbols\n"

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "kci.log"
        setup_logging("DEBUG", log_file=log_file, stream=io.StringIO())
        get_logger("cli").debug("to file")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()
        assert "[DEBUG] kicad_importer.cli: to file" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_replaces_handlers(self):
        setup_logging("WARNING", stream=io.StringIO())
        setup_logging("WARNING", stream=io.StringIO())
        assert len(logging.getLogger(LOGGER_NAME).handlers) == 1

    def test_unknown_level_falls_back(self):
        logger = setup_logging("chatty", stream=io.StringIO())
        assert logger.level == logging.WARNING
