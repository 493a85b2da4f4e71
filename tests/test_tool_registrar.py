"""
Tests for ThinkingToolsRegistrar

Exercises the tool implementations directly and checks that register()
accepts a FastMCP application.
"""

from fastmcp import FastMCP

from sequential_thinking.config import ThinkingConfig
from sequential_thinking.services.tool_registrar import ThinkingToolsRegistrar
from sequential_thinking.thinking.registry import SessionRegistry
from sequential_thinking.thinking.service import ThinkingService


class RecordingApp:
    """Collects the functions passed to @app.tool()."""

    def __init__(self):
        self.tools = {}

    def tool(self, *args, **kwargs):
        def decorator(func):
            self.tools[func.__name__] = func
            return func
        return decorator


class TestSequentialThinkingTool:
    """Test the sequential_thinking tool."""

    def test_success_response(self, registrar):
        """Test a successful call."""
        result = registrar.sequential_thinking(
            thought="Start", thought_number=1, total_thoughts=2,
            next_thought_needed=True, session_id="s", session_title="Demo",
        )

        assert result["success"]
        assert result["session_id"] == "s"
        assert result["thought_number"] == 1
        assert result["progress"]["current_declared_total"] == 2

    def test_invalid_input(self, registrar):
        """Test pydantic validation errors become InvalidInput."""
        result = registrar.sequential_thinking(
            thought="Revise", thought_number=2, total_thoughts=2,
            next_thought_needed=True, is_revision=True,
        )

        assert result["success"] is False
        assert result["error_kind"] == "InvalidInput"
        assert "revises_thought" in result["error"]

    def test_blank_thought(self, registrar):
        result = registrar.sequential_thinking(
            thought="   ", thought_number=1, total_thoughts=1, next_thought_needed=False,
        )

        assert result["error_kind"] == "InvalidInput"

    def test_engine_error_kind(self, registrar):
        """Test that engine errors keep their kind."""
        registrar.sequential_thinking(
            thought="One", thought_number=2, total_thoughts=3,
            next_thought_needed=True, session_id="s",
        )
        result = registrar.sequential_thinking(
            thought="Back", thought_number=1, total_thoughts=3,
            next_thought_needed=True, session_id="s",
        )

        assert result == {
            "success": False,
            "error": result["error"],
            "error_kind": "InvalidNumbering",
            "details": result["details"],
        }


class TestSessionTools:
    """Test the session tools."""

    def _seed(self, registrar, session_id, count):
        for n in range(1, count + 1):
            registrar.sequential_thinking(
                thought=f"{session_id} {n}", thought_number=n, total_thoughts=count,
                next_thought_needed=n < count, session_id=session_id,
            )

    def test_get_and_analyze(self, registrar):
        self._seed(registrar, "s", 3)

        snapshot = registrar.get_session("s")
        analytics = registrar.analyze_session("s")

        assert snapshot["success"] and len(snapshot["main_sequence"]) == 3
        assert analytics["success"] and analytics["total_thoughts"] == 3

    def test_get_missing(self, registrar):
        result = registrar.get_session("missing")

        assert result["success"] is False
        assert result["error_kind"] == "NotFound"

    def test_export(self, registrar):
        self._seed(registrar, "s", 2)

        result = registrar.export_session("s", "narrative")

        assert result["success"]
        assert result["format"] == "narrative"
        assert len(result["content"]["lines"]) == 2

    def test_export_unsupported(self, registrar):
        self._seed(registrar, "s", 1)

        assert registrar.export_session("s", "pdf")["error_kind"] == "UnsupportedFormat"

    def test_merge(self, registrar):
        """Test merging through the tool surface."""
        self._seed(registrar, "a", 3)
        self._seed(registrar, "b", 2)

        result = registrar.merge_sessions(["a", "b"])
        merged = registrar.get_session(result["session_id"])

        assert result["success"]
        assert result["strategy"] == "renumber"
        assert [t["number"] for t in merged["main_sequence"]] == [1, 2, 3, 4, 5]

    def test_merge_errors(self, registrar):
        assert registrar.merge_sessions([])["error_kind"] == "EmptyMergeSet"
        assert registrar.merge_sessions(["a"], strategy="zip")["error_kind"] == "InvalidInput"

    def test_delete_and_list(self, registrar):
        self._seed(registrar, "a", 1)
        self._seed(registrar, "b", 1)

        assert registrar.delete_session("a")["deleted"]
        assert registrar.delete_session("a")["error_kind"] == "NotFound"

        listing = registrar.list_sessions()
        assert listing["success"]
        assert [s["session_id"] for s in listing["sessions"]] == ["b"]


class TestRegistration:
    """Test registering tools with FastMCP."""

    def test_register(self, registrar):
        """Test that registration completes on a fresh app."""
        app = FastMCP("test-sequential-thinking")

        registrar.register(app)

    def test_export_tool_uses_configured_format(self, clock):
        """Test that the export tool falls back to default_export_format."""
        config = ThinkingConfig.for_testing(default_export_format="narrative")
        registrar = ThinkingToolsRegistrar(ThinkingService(SessionRegistry(config, clock=clock), config))
        app = RecordingApp()
        registrar.register(app)

        registrar.sequential_thinking(
            thought="Only", thought_number=1, total_thoughts=1,
            next_thought_needed=False, session_id="s",
        )
        result = app.tools["export_session"]("s")

        assert result["format"] == "narrative"
