"""
Progress Estimator

Reports how far the main sequence has come against the thinker's own,
most recent estimate of the total. The declared total may grow or shrink
between thoughts; only the latest value counts.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict

from .record import MAIN_SEQUENCE

if TYPE_CHECKING:
    from .session import ThinkingSession


@dataclass(frozen=True)
class ProgressReport:
    highest_number_seen: int
    current_declared_total: int
    finished: bool
    completion_ratio: float
    needs_more_thoughts: bool
    active_branches: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "highest_number_seen": self.highest_number_seen,
            "current_declared_total": self.current_declared_total,
            "finished": self.finished,
            "completion_ratio": self.completion_ratio,
            "needs_more_thoughts": self.needs_more_thoughts,
            "active_branches": self.active_branches,
        }


def estimate_progress(session: "ThinkingSession") -> ProgressReport:
    """
    Progress of a session's main sequence.

    `finished` mirrors the session's completed flag, whether or not the
    highest number matches the declared total. Caller holds the session's
    read or write lock.
    """
    highest = session.store.last_number(MAIN_SEQUENCE) or 0
    declared = session.metadata.current_declared_total
    finished = session.metadata.completed

    return ProgressReport(
        highest_number_seen=highest,
        current_declared_total=declared,
        finished=finished,
        completion_ratio=round(highest / declared, 4) if declared else 0.0,
        needs_more_thoughts=session.metadata.needs_expansion or not finished,
        active_branches=len(session.branches),
    )
