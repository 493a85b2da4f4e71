"""
Tests for the debug trace log location

The file handler is created at import time and rebuilt once configuration
is loaded, so --project and sequential_thinking.json decide where
debug_trace.log is written.
"""

import json
import logging
from pathlib import Path

import pytest

from sequential_thinking import server
from sequential_thinking.logging_config import (
    configure_logger_for_debug_trace,
    debug_trace_logger,
    reconfigure_file_logging,
)
from sequential_thinking.services.config_loader import ConfigLoader


@pytest.fixture
def trace_env(monkeypatch):
    """Clear the log location variables; file logging is disabled again on teardown."""
    for env_var in ("SEQTHINK_LOG_DIR", "SEQTHINK_PROJECT_ROOT", "SEQTHINK_DEBUG_LOG"):
        monkeypatch.setenv(env_var, "")
        monkeypatch.delenv(env_var)
    yield monkeypatch
    monkeypatch.setenv("SEQTHINK_DEBUG_LOG", "")
    reconfigure_file_logging()


def _file_paths(logger):
    return [Path(h.baseFilename) for h in logger.handlers if isinstance(h, logging.FileHandler)]


class TestReconfigureFileLogging:
    """Test rebuilding the debug_trace.log handler."""

    def test_explicit_log_dir(self, trace_env, tmp_path):
        """Test that module loggers follow the new location."""
        trace_env.setenv("SEQTHINK_LOG_DIR", str(tmp_path / "logs"))
        module_logger = configure_logger_for_debug_trace("tests.trace_location")

        path = reconfigure_file_logging()
        module_logger.debug("written after reconfiguration")
        for handler in module_logger.handlers:
            handler.flush()

        assert path == tmp_path / "logs" / "debug_trace.log"
        assert _file_paths(debug_trace_logger) == [path]
        assert _file_paths(module_logger) == [path]
        assert "written after reconfiguration" in path.read_text(encoding="utf-8")

    def test_project_root(self, trace_env, tmp_path):
        trace_env.setenv("SEQTHINK_PROJECT_ROOT", str(tmp_path))

        path = reconfigure_file_logging()

        assert path == tmp_path / ".sequential_thinking" / "debug_trace.log"

    def test_log_dir_from_config_file(self, trace_env, tmp_path):
        """Test the log_dir key of sequential_thinking.json."""
        (tmp_path / "sequential_thinking.json").write_text(json.dumps({"log_dir": str(tmp_path / "custom")}))
        ConfigLoader().load(tmp_path)

        assert reconfigure_file_logging() == tmp_path / "custom" / "debug_trace.log"

    def test_debug_log_disabled_from_config_file(self, trace_env, tmp_path):
        """Test that debug_log="" removes the file handler."""
        trace_env.setenv("SEQTHINK_LOG_DIR", str(tmp_path))
        reconfigure_file_logging()
        (tmp_path / "sequential_thinking.json").write_text(json.dumps({"debug_log": ""}))
        ConfigLoader().load(tmp_path)

        assert reconfigure_file_logging() is None
        assert _file_paths(debug_trace_logger) == []


class TestServerLogLocation:
    """Test that the server applies the loaded configuration to logging."""

    def test_server_uses_project_log_dir(self, trace_env, tmp_path):
        trace_env.setenv("SEQTHINK_PROJECT_ROOT", str(tmp_path))
        trace_env.setattr(server, "load_config", lambda: ConfigLoader().load())

        server.create_server()

        assert _file_paths(debug_trace_logger) == [tmp_path / ".sequential_thinking" / "debug_trace.log"]
