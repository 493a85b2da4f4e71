"""
Thinking Tools Registrar

Registers the sequential thinking MCP tools:
- sequential_thinking: Record a thought (revisions and branches included)
- get_session: Full session snapshot
- analyze_session: Analytics snapshot
- export_session: Structured or narrative export document
- merge_sessions: Merge sessions into a new one
- delete_session: Remove a session
- list_sessions: Live sessions with progress and registry stats
"""

from functools import wraps
from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP
from pydantic import ValidationError

from ..exceptions import ThinkingError
from ..logging_config import configure_logger_for_debug_trace
from ..models import ThoughtInput
from ..thinking.merge import MergeStrategy
from ..thinking.service import ThinkingService

logger = configure_logger_for_debug_trace(__name__)


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def handle_thinking_errors(func: Callable[..., Dict[str, Any]]) -> Callable[..., Dict[str, Any]]:
    """
    Decorator converting engine errors into tool error responses.

    ThinkingError becomes {"success": False, "error", "error_kind"};
    argument validation failures use error_kind "InvalidInput". Anything
    else propagates to FastMCP.
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        try:
            return func(*args, **kwargs)
        except ThinkingError as e:
            logger.warning("%s failed: %s: %s", func.__name__, e.kind, e.message)
            return e.to_response()
        except ValidationError as e:
            message = _validation_message(e)
            logger.warning("%s rejected input: %s", func.__name__, message)
            return {"success": False, "error": message, "error_kind": "InvalidInput"}
    return wrapper


class ThinkingToolsRegistrar:
    """Registers sequential thinking tools with FastMCP."""

    def __init__(self, service: ThinkingService):
        self.service = service

    # =========================================================================
    # Tool implementations
    # =========================================================================

    @handle_thinking_errors
    def sequential_thinking(
        self,
        thought: str,
        thought_number: int,
        total_thoughts: int,
        next_thought_needed: bool,
        session_id: Optional[str] = None,
        is_revision: bool = False,
        revises_thought: Optional[int] = None,
        branch_from_thought: Optional[int] = None,
        branch_id: Optional[str] = None,
        parent_branch_id: Optional[str] = None,
        needs_more_thoughts: bool = False,
        session_title: Optional[str] = None,
    ) -> Dict[str, Any]:
        thought_input = ThoughtInput(
            thought=thought,
            thought_number=thought_number,
            total_thoughts=total_thoughts,
            next_thought_needed=next_thought_needed,
            is_revision=is_revision,
            revises_thought=revises_thought,
            branch_from_thought=branch_from_thought,
            branch_id=branch_id,
            parent_branch_id=parent_branch_id,
            needs_more_thoughts=needs_more_thoughts,
        )
        summary = self.service.add_thought(session_id, thought_input, title=session_title)
        return {"success": True, **summary.to_dict()}

    @handle_thinking_errors
    def get_session(self, session_id: str) -> Dict[str, Any]:
        return {"success": True, **self.service.get_session(session_id).to_dict()}

    @handle_thinking_errors
    def analyze_session(self, session_id: str) -> Dict[str, Any]:
        return {"success": True, **self.service.analyze_session(session_id).to_dict()}

    @handle_thinking_errors
    def export_session(self, session_id: str, format: Optional[str] = None) -> Dict[str, Any]:
        document = self.service.export_session(session_id, format)
        return {"success": True, "session_id": session_id, **document.to_dict()}

    @handle_thinking_errors
    def merge_sessions(
        self,
        session_ids: List[str],
        strategy: str = MergeStrategy.RENUMBER.value,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            merge_strategy = MergeStrategy(strategy)
        except ValueError:
            return {
                "success": False,
                "error": f"Unknown merge strategy '{strategy}'. Use one of: "
                         + ", ".join(s.value for s in MergeStrategy),
                "error_kind": "InvalidInput",
            }
        new_id = self.service.merge_sessions(session_ids, merge_strategy, title=title)
        return {
            "success": True,
            "session_id": new_id,
            "source_session_ids": list(session_ids),
            "strategy": merge_strategy.value,
        }

    @handle_thinking_errors
    def delete_session(self, session_id: str) -> Dict[str, Any]:
        self.service.delete_session(session_id)
        return {"success": True, "session_id": session_id, "deleted": True}

    @handle_thinking_errors
    def list_sessions(self) -> Dict[str, Any]:
        return {"success": True, **self.service.list_sessions()}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, app: FastMCP) -> None:
        """Register all thinking tools."""
        self._register_thinking_tool(app)
        self._register_session_tools(app)
        self._register_merge_tool(app)

    def _register_thinking_tool(self, app: FastMCP) -> None:
        registrar = self

        @app.tool()
        def sequential_thinking(
            thought: str,
            thought_number: int,
            total_thoughts: int,
            next_thought_needed: bool,
            session_id: Optional[str] = None,
            is_revision: bool = False,
            revises_thought: Optional[int] = None,
            branch_from_thought: Optional[int] = None,
            branch_id: Optional[str] = None,
            parent_branch_id: Optional[str] = None,
            needs_more_thoughts: bool = False,
            session_title: Optional[str] = None,
        ) -> Dict[str, Any]:
            """
            Record one step of a dynamic, reflective thinking process.

            Thoughts form a numbered main sequence. Numbers must increase but
            may skip, and total_thoughts can be re-estimated at any step.
            A thought can revise an earlier one, or start or continue a branch
            that explores an alternative from a given thought.

            Args:
                thought: Your current thinking step
                thought_number: Number of this thought (greater than the last one in its sequence)
                total_thoughts: Current estimate of thoughts needed
                next_thought_needed: Whether another thought will follow
                session_id: Session to add to (new session when omitted)
                is_revision: Whether this thought revises an earlier one
                revises_thought: Number of the thought being revised
                branch_from_thought: Thought number a new branch starts from
                branch_id: Branch identifier (numbering restarts per branch)
                parent_branch_id: Branch a new branch forks from (main when omitted)
                needs_more_thoughts: Signal that more thoughts than estimated are needed
                session_title: Title for a session created by this call

            Returns:
                session_id, thought_number, total_thoughts, branches,
                thought_history_length and progress
            """
            return registrar.sequential_thinking(
                thought=thought,
                thought_number=thought_number,
                total_thoughts=total_thoughts,
                next_thought_needed=next_thought_needed,
                session_id=session_id,
                is_revision=is_revision,
                revises_thought=revises_thought,
                branch_from_thought=branch_from_thought,
                branch_id=branch_id,
                parent_branch_id=parent_branch_id,
                needs_more_thoughts=needs_more_thoughts,
                session_title=session_title,
            )

    def _register_session_tools(self, app: FastMCP) -> None:
        registrar = self

        @app.tool()
        def get_session(session_id: str) -> Dict[str, Any]:
            """
            Get a session's thoughts, branches, metadata and progress.

            Args:
                session_id: Session identifier

            Returns:
                session_id, title, metadata, progress, main_sequence, branches
            """
            return registrar.get_session(session_id)

        @app.tool()
        def analyze_session(session_id: str) -> Dict[str, Any]:
            """
            Analyze a session: revision ratio, branch depth, efficiency and style.

            Args:
                session_id: Session identifier

            Returns:
                Analytics snapshot (fails with EmptySession when no thoughts exist)
            """
            return registrar.analyze_session(session_id)

        @app.tool()
        def export_session(session_id: str, format: Optional[str] = None) -> Dict[str, Any]:
            """
            Export a session as a structural document.

            Args:
                session_id: Session identifier
                format: "structured" (tree) or "narrative" (linearized lines);
                    defaults to the configured default_export_format

            Returns:
                format and content (session, progress, sequences, analytics)
            """
            return registrar.export_session(session_id, format)

        @app.tool()
        def delete_session(session_id: str) -> Dict[str, Any]:
            """
            Delete a session.

            Args:
                session_id: Session identifier

            Returns:
                session_id and deleted flag
            """
            return registrar.delete_session(session_id)

        @app.tool()
        def list_sessions() -> Dict[str, Any]:
            """
            List live sessions with their progress.

            Returns:
                sessions, count and registry stats
            """
            return registrar.list_sessions()

    def _register_merge_tool(self, app: FastMCP) -> None:
        registrar = self

        @app.tool()
        def merge_sessions(
            session_ids: List[str],
            strategy: str = "renumber",
            title: Optional[str] = None,
        ) -> Dict[str, Any]:
            """
            Merge sessions, in order, into a new session.

            Each session's main sequence is renumbered to follow the previous
            one. Sources are left unchanged.

            Args:
                session_ids: Sessions to merge, in order
                strategy: "renumber" renames colliding branch ids,
                          "reject_on_collision" fails on incompatible collisions
                title: Title of the merged session

            Returns:
                session_id of the merged session
            """
            return registrar.merge_sessions(session_ids, strategy, title)
