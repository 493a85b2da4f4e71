"""
Thinking Service - External Operations

The operations exposed to MCP tools. Each one resolves its session
through the SessionRegistry and runs under that session's lock:
- add_thought under the write lock (creates the session on first use)
- get_session, analyze_session, export_session under the read lock
- merge_sessions reads each source under its read lock in turn
- delete_session through the registry (write lock)

A session evicted between lookup and lock acquisition is seen as closed
once the lock is held; the operation then resolves the id again.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from ..config import ThinkingConfig
from ..exceptions import EmptyMergeSet, NotFound, ThinkingError
from ..logging_config import configure_logger_for_debug_trace
from ..models import ThoughtInput
from .analytics import AnalyticsSnapshot, analyze
from .display import log_thought
from .export import ExportDocument, ExportFormat, export_session
from .merge import MergeStrategy, merge_sessions
from .progress import ProgressReport, estimate_progress
from .record import MAIN_SEQUENCE, ThoughtRecord
from .registry import SessionRegistry
from .session import ThinkingSession

logger = configure_logger_for_debug_trace(__name__)

T = TypeVar("T")

# Lookups retried when a session closes between lookup and lock
MAX_RESOLVE_ATTEMPTS = 3


@dataclass(frozen=True)
class ThoughtAcceptedSummary:
    session_id: str
    sequence: str
    thought_number: int
    total_thoughts: int
    next_thought_needed: bool
    is_revision: bool
    branch_id: Optional[str]
    branches: List[str]
    thought_history_length: int
    progress: ProgressReport

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "sequence": self.sequence,
            "thought_number": self.thought_number,
            "total_thoughts": self.total_thoughts,
            "next_thought_needed": self.next_thought_needed,
            "is_revision": self.is_revision,
            "branch_id": self.branch_id,
            "branches": list(self.branches),
            "thought_history_length": self.thought_history_length,
            "progress": self.progress.to_dict(),
        }


@dataclass(frozen=True)
class ThinkingSessionSnapshot:
    session_id: str
    title: Optional[str]
    metadata: Dict[str, Any]
    progress: ProgressReport
    main_sequence: List[Dict[str, Any]] = field(default_factory=list)
    branches: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "title": self.title,
            "metadata": dict(self.metadata),
            "progress": self.progress.to_dict(),
            "main_sequence": list(self.main_sequence),
            "branches": list(self.branches),
        }


class ThinkingService:
    """
    Entry point for every session operation.

    Args:
        registry: Registry owning the sessions
        config: Engine configuration (defaults to the registry's)
    """

    def __init__(self, registry: SessionRegistry, config: Optional[ThinkingConfig] = None):
        self.registry = registry
        self.config = config or registry.config

    # =========================================================================
    # Session resolution
    # =========================================================================

    def _with_read_lock(self, session_id: str, action: Callable[[ThinkingSession], T]) -> T:
        for _ in range(MAX_RESOLVE_ATTEMPTS):
            session = self.registry.get(session_id)
            with session.lock.read_locked():
                if session.closed:
                    continue
                return action(session)
        raise NotFound(f"Session '{session_id}' not found", {"session_id": session_id})

    # =========================================================================
    # Writes
    # =========================================================================

    def add_thought(
        self,
        session_id: Optional[str],
        thought: ThoughtInput,
        strict: bool = False,
        title: Optional[str] = None,
    ) -> ThoughtAcceptedSummary:
        """
        Accept one thought.

        Args:
            session_id: Target session; None creates a new session
            thought: Validated tool arguments
            strict: Fail with NotFound instead of creating an unknown session
            title: Title used when the session is created by this call

        Returns:
            ThoughtAcceptedSummary with the session's progress after the append
        """
        for _ in range(MAX_RESOLVE_ATTEMPTS):
            created = False
            if strict:
                if session_id is None:
                    raise NotFound("A session_id is required for strict lookup")
                session = self.registry.get(session_id)
            else:
                session, created = self.registry.lookup_or_create(session_id, title=title)

            with session.lock.write_locked():
                if session.closed:
                    continue
                try:
                    record = session.add_thought(thought.to_record(), thought.parent_branch_id)
                except ThinkingError:
                    # A rejected first thought must not leave its session behind
                    if created:
                        self.registry.discard_if_empty(session)
                    raise
                session.touch()
                summary = self._summarize(session, record)
            break
        else:
            raise NotFound(f"Session '{session_id}' not found", {"session_id": session_id})

        if self.config.enable_thought_logging:
            log_thought(record)
        return summary

    def _summarize(self, session: ThinkingSession, record: ThoughtRecord) -> ThoughtAcceptedSummary:
        return ThoughtAcceptedSummary(
            session_id=session.session_id,
            sequence=record.sequence,
            thought_number=record.number,
            total_thoughts=record.declared_total,
            next_thought_needed=record.continues,
            is_revision=record.is_revision,
            branch_id=record.branch_id,
            branches=[b.branch_id for b in session.branches.list_branches()],
            thought_history_length=session.store.total_count(),
            progress=estimate_progress(session),
        )

    def create_session(self, title: Optional[str] = None, session_id: Optional[str] = None) -> ThinkingSession:
        return self.registry.create_session(title=title, session_id=session_id)

    def merge_sessions(
        self,
        session_ids: Sequence[str],
        strategy: Union[MergeStrategy, str] = MergeStrategy.RENUMBER,
        title: Optional[str] = None,
    ) -> str:
        """
        Merge sessions into a new registered session.

        Returns:
            Id of the merged session

        Raises:
            EmptyMergeSet: no session ids
            NotFound: an id is unknown
            MergeConflict: see merge_sessions()
        """
        if not session_ids:
            raise EmptyMergeSet("At least one session id is required to merge")

        sources = [self.registry.get(session_id) for session_id in session_ids]
        merged = merge_sessions(sources, strategy=strategy, config=self.config, title=title)
        self.registry.add(merged)
        return merged.session_id

    def delete_session(self, session_id: str) -> None:
        self.registry.delete(session_id)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_session(self, session_id: str) -> ThinkingSessionSnapshot:
        return self._with_read_lock(session_id, self._snapshot)

    def _snapshot(self, session: ThinkingSession) -> ThinkingSessionSnapshot:
        return ThinkingSessionSnapshot(
            session_id=session.session_id,
            title=session.title,
            metadata=session.metadata.to_dict(),
            progress=estimate_progress(session),
            main_sequence=[r.to_dict() for r in session.store.sequence(MAIN_SEQUENCE)],
            branches=[
                {
                    **b.to_dict(),
                    "thoughts": [r.to_dict() for r in session.store.sequence(b.branch_id)],
                }
                for b in session.branches.list_branches()
            ],
        )

    def get_progress(self, session_id: str) -> ProgressReport:
        return self._with_read_lock(session_id, estimate_progress)

    def analyze_session(self, session_id: str) -> AnalyticsSnapshot:
        return self._with_read_lock(session_id, analyze)

    def export_session(
        self,
        session_id: str,
        format: Union[ExportFormat, str, None] = None,
    ) -> ExportDocument:
        export_format = format if format is not None else self.config.default_export_format
        return self._with_read_lock(session_id, lambda s: export_session(s, export_format))

    def list_sessions(self) -> Dict[str, Any]:
        """Summaries of every live session plus registry stats."""
        sessions = []
        for session in self.registry.list_sessions():
            with session.lock.read_locked():
                if session.closed:
                    continue
                sessions.append({
                    "session_id": session.session_id,
                    "title": session.title,
                    "thought_count": session.store.total_count(),
                    "branch_count": len(session.branches),
                    "created_at": session.metadata.created_at.isoformat(),
                    "last_modified": session.metadata.last_modified.isoformat(),
                    "progress": estimate_progress(session).to_dict(),
                })
        return {"sessions": sessions, "count": len(sessions), "stats": self.registry.get_stats()}
