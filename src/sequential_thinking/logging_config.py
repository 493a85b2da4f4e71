"""
Logging Configuration for the Sequential Thinking MCP Server.

Provides centralized logger setup for the debug trace log and the
thought log. Stdout carries the MCP stdio transport, so every handler
here writes to files or stderr only.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Log directory priority:
# 1. SEQTHINK_LOG_DIR (explicit)
# 2. SEQTHINK_PROJECT_ROOT/.sequential_thinking (if set)
# 3. CWD/.sequential_thinking (fallback)
def _get_log_directory() -> Path:
    """Get the log directory path."""
    log_dir = os.getenv("SEQTHINK_LOG_DIR")
    if not log_dir:
        project_root = os.getenv("SEQTHINK_PROJECT_ROOT")
        if project_root:
            log_dir = str(Path(project_root) / ".sequential_thinking")
        else:
            log_dir = str(Path.cwd() / ".sequential_thinking")
    return Path(log_dir)


def _ensure_log_directory() -> Path:
    """Ensure log directory exists and return its path."""
    log_dir = _get_log_directory()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _debug_log_enabled() -> bool:
    # Set SEQTHINK_DEBUG_LOG="" to disable file logging
    value = os.getenv("SEQTHINK_DEBUG_LOG")
    return value is None or value != ""


def _create_file_handler(log_filename: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    Args:
        log_filename: Name of the log file (e.g., 'debug_trace.log')

    Returns:
        Configured FileHandler, or None if file logging is disabled or the
        directory cannot be created
    """
    if not _debug_log_enabled():
        return None

    try:
        log_dir = _ensure_log_directory()
    except OSError:
        return None

    handler = logging.FileHandler(log_dir / log_filename, mode='a', encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    return handler


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""
    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_stderr_handler(fmt: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s', level: int = logging.INFO) -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_debug_trace_logger() -> logging.Logger:
    """
    Get the debug trace logger for engine operations.

    Output goes to .sequential_thinking/debug_trace.log and stderr.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("seqthink.debug_trace")

    # Only configure once
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False  # Don't propagate to root logger

        file_handler = _create_file_handler("debug_trace.log")
        if file_handler:
            logger.addHandler(file_handler)

        logger.addHandler(_create_stderr_handler())

    return logger


def get_thought_logger() -> logging.Logger:
    """
    Get the thought logger.

    Accepted thoughts are rendered as boxed text on stderr so an operator
    can follow a session live. The message is written verbatim.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("seqthink.thoughts")

    if not logger.handlers:
        logger.setLevel(logging.INFO)
        logger.propagate = False
        logger.addHandler(_create_stderr_handler('%(message)s'))

    return logger


# Pre-create loggers for import convenience
debug_trace_logger = get_debug_trace_logger()
thought_logger = get_thought_logger()

# Module loggers sharing the debug trace handlers
_trace_logger_names = set()


def configure_logger_for_debug_trace(logger_name: str) -> logging.Logger:
    """
    Configure a logger to also write to debug_trace.log.

    Args:
        logger_name: Name of the logger to configure (e.g., __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False  # handlers below already reach stderr
    for handler in debug_trace_logger.handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    _trace_logger_names.add(logger_name)
    return logger


def reconfigure_file_logging() -> Optional[Path]:
    """
    Rebuild the debug_trace.log handler from the current environment.

    Loggers are created at import time, before sequential_thinking.json or
    --project can set SEQTHINK_LOG_DIR, SEQTHINK_PROJECT_ROOT or
    SEQTHINK_DEBUG_LOG. Call this once configuration is loaded; the old file
    handler is closed and replaced on every debug trace logger.

    Returns:
        Path of the new log file, or None if file logging is disabled
    """
    new_handler = _create_file_handler("debug_trace.log")
    loggers = [debug_trace_logger] + [logging.getLogger(name) for name in sorted(_trace_logger_names)]

    old_handlers = [h for h in debug_trace_logger.handlers if isinstance(h, logging.FileHandler)]
    for logger in loggers:
        for handler in old_handlers:
            logger.removeHandler(handler)
        if new_handler is not None:
            logger.addHandler(new_handler)
    for handler in old_handlers:
        handler.close()

    if new_handler is None:
        return None
    return Path(new_handler.baseFilename)


def suppress_stderr_logging():
    """
    Suppress stderr logging for all engine loggers.

    File logging continues to work normally.
    """
    for logger in [debug_trace_logger, thought_logger]:
        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.CRITICAL + 1)  # Effectively disable


def restore_stderr_logging():
    """Restore stderr logging for all engine loggers."""
    for logger in [debug_trace_logger, thought_logger]:
        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.INFO)


def set_stderr_log_level(level: int) -> None:
    """Set the minimum level written to stderr by the debug trace logger."""
    for handler in debug_trace_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
