"""
Tests for logging setup and level selection.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rtos_provision.core.observability.logging_config import (
    level_from_flags,
    parse_level,
    setup_logging,
)


class TestLevelFromFlags:
    def test_precedence(self):
        assert level_from_flags(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert level_from_flags(verbose=True, quiet=True) == "INFO"
        assert level_from_flags(quiet=True, environ={"RTP_LOG_LEVEL": "DEBUG"}) == "ERROR"
        assert level_from_flags(environ={"RTP_LOG_LEVEL": "INFO"}) == "INFO"
        assert level_from_flags() == "WARNING"


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("ERROR") == logging.ERROR

    def test_unknown_and_empty(self):
        assert parse_level("chatty") == logging.WARNING
        assert parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler_gets_more_detail(self, tmp_path: Path):
        log_file = tmp_path / "rtp.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("rtos_provision.test").debug("file only")
        for h in root.handlers:
            h.flush()
        assert "file only" in log_file.read_text(encoding="utf-8")
