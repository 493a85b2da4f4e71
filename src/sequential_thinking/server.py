"""
Sequential Thinking MCP Server

Wires configuration, the session registry, the thinking service and the
tool registrar into a FastMCP application served over stdio.
"""

import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional

from fastmcp import FastMCP

from .config import ThinkingConfig
from .logging_config import (
    configure_logger_for_debug_trace,
    reconfigure_file_logging,
    set_stderr_log_level,
)
from .services.config_loader import load_config
from .services.tool_registrar import ThinkingToolsRegistrar
from .thinking.registry import SessionRegistry
from .thinking.service import ThinkingService

logger = configure_logger_for_debug_trace(__name__)


SERVER_INSTRUCTIONS = """Sequential Thinking records a dynamic, reflective problem-solving process as numbered thoughts.

Use `sequential_thinking` for each step:
- Keep thought numbers increasing; skip numbers freely when re-estimating.
- Adjust total_thoughts whenever your estimate changes.
- Revise an earlier step with is_revision=true and revises_thought=N.
- Explore an alternative with branch_id="name" and branch_from_thought=N (numbering restarts per branch).
- Set next_thought_needed=false when done.

Pass the returned session_id on later calls to stay in the same session.
Use `get_session`, `analyze_session` and `export_session` to review a session,
`merge_sessions` to combine sessions, `list_sessions` and `delete_session` to manage them."""


class SequentialThinkingServer:
    """MCP server exposing the sequential thinking tools."""

    def __init__(self, config: Optional[ThinkingConfig] = None):
        if config is None:
            load_config()
            log_file = reconfigure_file_logging()
            config = ThinkingConfig.from_env()
            logger.debug("Debug trace log: %s", log_file or "disabled")

        for warning in config.validate():
            logger.warning("Config: %s", warning)

        self.config = config
        self.registry = SessionRegistry(config)
        self.service = ThinkingService(self.registry, config)
        self.tool_registrar = ThinkingToolsRegistrar(self.service)

        self.app = FastMCP("sequential-thinking", instructions=SERVER_INSTRUCTIONS)
        self.tool_registrar.register(self.app)

    def run(self) -> None:
        """Start the MCP server with graceful shutdown support."""

        def signal_handler(signum, frame):
            sig_name = signal.Signals(signum).name
            logger.warning("Received %s, initiating graceful shutdown...", sig_name)
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        if self.config.auto_cleanup:
            self.registry.start_auto_cleanup()

        logger.info("Sequential Thinking MCP Server starting (%s)", self.config.to_dict())
        try:
            self.app.run()
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self.registry.stop_auto_cleanup()


def create_server(config: Optional[ThinkingConfig] = None) -> SequentialThinkingServer:
    return SequentialThinkingServer(config)


def main() -> None:
    """Main entry point for the Sequential Thinking MCP server."""
    import argparse

    parser = argparse.ArgumentParser(description="Sequential Thinking MCP Server")
    parser.add_argument("--project", "-p", type=Path, default=None,
                        help="Project root holding sequential_thinking.json (default: current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    # Set before loading config so the loader and log directory agree
    if args.project:
        os.environ["SEQTHINK_PROJECT_ROOT"] = str(args.project.resolve())

    log_level = logging.DEBUG if args.verbose else logging.INFO
    set_stderr_log_level(log_level)

    # Third-party libraries log through the root logger; stdout carries the protocol
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if args.verbose else logging.WARNING)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)

    create_server().run()


if __name__ == "__main__":
    main()
