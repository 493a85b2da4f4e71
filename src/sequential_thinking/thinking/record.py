"""
Thought Record

One accepted step of reasoning. Records are immutable once stored; a
revision is a new record pointing back at the thought it revises.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

MAIN_SEQUENCE = "main"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ThoughtRecord:
    """
    A single thought within a sequence.

    Attributes:
        text: The reasoning step (non-empty)
        number: Position in its sequence; strictly increasing, gaps allowed
        declared_total: The caller's current estimate of total thoughts
        continues: Whether another thought is intended after this one
        revision_of: Earlier number in the same sequence this record revises
        branch_point: Fork thought in the parent sequence (first branch record only)
        branch_id: Branch the record belongs to; None means the main sequence
        needs_expansion: Hint that more thoughts than declared are needed
        created_at: UTC time the record was accepted
    """

    text: str
    number: int
    declared_total: int
    continues: bool
    revision_of: Optional[int] = None
    branch_point: Optional[int] = None
    branch_id: Optional[str] = None
    needs_expansion: bool = False
    created_at: datetime = field(default_factory=utc_now)

    @property
    def sequence(self) -> str:
        """Name of the sequence this record lives in."""
        return self.branch_id if self.branch_id is not None else MAIN_SEQUENCE

    @property
    def is_revision(self) -> bool:
        return self.revision_of is not None

    @property
    def is_branch_start(self) -> bool:
        return self.branch_point is not None

    def with_changes(self, **changes: Any) -> "ThoughtRecord":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "number": self.number,
            "declared_total": self.declared_total,
            "continues": self.continues,
            "revision_of": self.revision_of,
            "branch_point": self.branch_point,
            "branch_id": self.branch_id,
            "needs_expansion": self.needs_expansion,
            "created_at": self.created_at.isoformat(),
        }
