"""
Thinking Session

One session's state: its thought store, branch manager, metadata and
read/write lock. add_thought() is the single write path; it expects the
caller to hold the session's write lock.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..config import ThinkingConfig
from ..exceptions import InvalidBranch, NotFound, ThinkingError
from ..logging_config import configure_logger_for_debug_trace
from .branches import BranchInfo, BranchManager, check_branch_id
from .locks import ReadWriteLock
from .record import MAIN_SEQUENCE, ThoughtRecord, utc_now
from .revisions import RevisionTracker
from .store import ThoughtStore

logger = configure_logger_for_debug_trace(__name__)


@dataclass
class SessionMetadata:
    """
    Mutable session-level state updated on every accepted thought.

    `completed` is set once a main-sequence thought with continues=False is
    accepted and is never cleared. completed_at_number and
    completed_declared_total capture the main sequence at that moment.
    """
    created_at: datetime = field(default_factory=utc_now)
    last_modified: datetime = field(default_factory=utc_now)
    current_declared_total: int = 0
    completed: bool = False
    completed_at_number: Optional[int] = None
    completed_declared_total: Optional[int] = None
    needs_expansion: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_at": self.created_at.isoformat(),
            "last_modified": self.last_modified.isoformat(),
            "current_declared_total": self.current_declared_total,
            "completed": self.completed,
            "completed_at_number": self.completed_at_number,
            "completed_declared_total": self.completed_declared_total,
            "needs_expansion": self.needs_expansion,
        }


class ThinkingSession:
    """
    A revisable, branchable log of thoughts.

    Attributes:
        session_id: Immutable session identifier
        title: Optional title given at creation
        store: Thoughts of the main sequence and every branch
        branches: Branch registry
        metadata: Declared total, completion and timestamps
        lock: Guards every read and write of the attributes above
        last_access: Monotonic time of the last operation (idle eviction)
        closed: Set once the session is deleted or evicted
    """

    def __init__(
        self,
        config: Optional[ThinkingConfig] = None,
        session_id: Optional[str] = None,
        title: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = config or ThinkingConfig()
        self.session_id = session_id or uuid.uuid4().hex
        self.title = title
        self.store = ThoughtStore(config.max_thoughts_per_session, config.max_thought_length)
        self.branches = BranchManager(self.store, config.max_branches_per_session)
        self.metadata = SessionMetadata()
        self.lock = ReadWriteLock()
        self._clock = clock
        self.last_access = clock()
        self.closed = False

    def touch(self) -> None:
        self.last_access = self._clock()

    def idle_seconds(self) -> float:
        return self._clock() - self.last_access

    def is_empty(self) -> bool:
        return self.store.is_empty()

    def revisions(self, sequence: str = MAIN_SEQUENCE) -> RevisionTracker:
        return RevisionTracker(self.store, sequence)

    # =========================================================================
    # Writes (caller holds lock.write_locked())
    # =========================================================================

    def add_thought(
        self,
        record: ThoughtRecord,
        parent_branch_id: Optional[str] = None,
    ) -> ThoughtRecord:
        """
        Accept one thought into the main sequence or a branch.

        A record naming an unknown branch creates it when it carries a
        branch_point; the branch forks `parent_branch_id` (main when None).
        Later records of a branch may repeat the fork point; it is checked
        and dropped before storage.

        Args:
            record: The thought to accept
            parent_branch_id: Parent sequence for a new nested branch

        Returns:
            The stored record

        Raises:
            NotFound: session closed, or unknown branch without a fork point
            InvalidBranch: fork point or parent disagrees with the branch
            ThinkingError: any store or branch validation failure
        """
        if self.closed:
            raise NotFound(f"Session '{self.session_id}' not found", {"session_id": self.session_id})

        created: Optional[BranchInfo] = None

        if record.branch_id is None:
            if record.branch_point is not None or parent_branch_id is not None:
                raise InvalidBranch("branch_point and parent_branch_id require a branch_id")
        else:
            check_branch_id(record.branch_id)
            if not self.branches.has(record.branch_id):
                if record.branch_point is None:
                    raise NotFound(
                        f"Branch '{record.branch_id}' not found; "
                        "its first thought must name the thought it branches from",
                        {"branch_id": record.branch_id},
                    )
                created = self.branches.create_branch(
                    record.branch_id,
                    parent_branch_id or MAIN_SEQUENCE,
                    record.branch_point,
                )
            else:
                record = self._check_existing_branch(record, parent_branch_id)

        try:
            self.store.append(record)
        except ThinkingError:
            if created is not None:
                self.branches.discard(created.branch_id)
            raise

        self._update_metadata(record)
        logger.debug(
            "session=%s accepted %s#%d (declared %d, continues=%s)",
            self.session_id, record.sequence, record.number, record.declared_total, record.continues,
        )
        return record

    def _check_existing_branch(
        self, record: ThoughtRecord, parent_branch_id: Optional[str]
    ) -> ThoughtRecord:
        info = self.branches.get(record.branch_id)

        if parent_branch_id is not None and parent_branch_id != info.parent_sequence:
            raise InvalidBranch(
                f"Branch '{info.branch_id}' forks '{info.parent_sequence}', not '{parent_branch_id}'",
                {"branch_id": info.branch_id, "parent_sequence": info.parent_sequence},
            )

        if self.store.is_empty(info.branch_id):
            if record.branch_point != info.branch_point:
                raise InvalidBranch(
                    f"First thought of branch '{info.branch_id}' must branch from thought {info.branch_point}",
                    {"branch_id": info.branch_id, "branch_point": info.branch_point},
                )
            return record

        if record.branch_point is None:
            return record
        if record.branch_point != info.branch_point:
            raise InvalidBranch(
                f"Branch '{info.branch_id}' forks at thought {info.branch_point}, not {record.branch_point}",
                {"branch_id": info.branch_id, "branch_point": info.branch_point},
            )
        return record.with_changes(branch_point=None)

    def _update_metadata(self, record: ThoughtRecord) -> None:
        meta = self.metadata
        meta.current_declared_total = record.declared_total
        meta.needs_expansion = record.needs_expansion
        meta.last_modified = utc_now()
        if record.branch_id is None and not record.continues:
            meta.completed = True
            meta.completed_at_number = record.number
            meta.completed_declared_total = record.declared_total

    def __repr__(self) -> str:
        return (
            f"ThinkingSession(id={self.session_id!r}, thoughts={self.store.total_count()}, "
            f"branches={len(self.branches)}, completed={self.metadata.completed})"
        )
