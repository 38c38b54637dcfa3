"""
Tests for observability — logging setup and level resolution.
"""

import logging
from pathlib import Path

import pytest

from execman.core.observability.logging_config import resolve_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_flag_precedence(self, monkeypatch):
        monkeypatch.delenv("EXECMAN_LOG_LEVEL", raising=False)
        assert resolve_level(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"
        assert resolve_level() == "WARNING"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("EXECMAN_LOG_LEVEL", "info")
        assert resolve_level() == "info"
        assert resolve_level(quiet=True) == "ERROR"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler_with_own_level(self, tmp_path: Path):
        log_file = tmp_path / "execman.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("execman.test").debug("to the file only")
        for h in root.handlers:
            h.flush()
        assert "to the file only" in log_file.read_text()

    def test_reconfigure_replaces_handlers(self):
        setup_logging("INFO")
        setup_logging("DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
