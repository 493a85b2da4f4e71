"""
Branch Manager

Tracks the branches of one session: which sequence each branch forks
from and at which thought. Ancestry is kept acyclic at creation time,
so walking parents always ends at the main sequence.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from ..config import DEFAULT_MAX_BRANCHES
from ..exceptions import (
    DanglingReference,
    DuplicateBranch,
    InvalidBranch,
    LimitExceeded,
    NotFound,
    SequenceCycle,
)
from .record import MAIN_SEQUENCE
from .store import ThoughtStore


@dataclass(frozen=True)
class BranchInfo:
    """A branch and its fork point."""
    branch_id: str
    parent_sequence: str
    branch_point: int
    depth: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch_id": self.branch_id,
            "parent_sequence": self.parent_sequence,
            "branch_point": self.branch_point,
            "depth": self.depth,
        }


def check_branch_id(branch_id: str) -> None:
    """Raise InvalidBranch for ids that can never name a branch."""
    if not branch_id or not branch_id.strip():
        raise InvalidBranch("Branch id must not be empty")
    if branch_id == MAIN_SEQUENCE:
        raise InvalidBranch(
            f"'{MAIN_SEQUENCE}' is reserved for the main sequence",
            {"branch_id": branch_id},
        )


class BranchManager:
    """Branch registry for one session, backed by the session's ThoughtStore."""

    def __init__(self, store: ThoughtStore, max_branches: int = DEFAULT_MAX_BRANCHES):
        self.store = store
        self.max_branches = max_branches
        self._branches: Dict[str, BranchInfo] = {}

    def create_branch(self, branch_id: str, parent_sequence: str, branch_point: int) -> BranchInfo:
        """
        Create an empty branch forking `parent_sequence` at thought `branch_point`.

        Args:
            branch_id: New branch id
            parent_sequence: MAIN_SEQUENCE or an existing branch id
            branch_point: Thought number in the parent sequence

        Returns:
            The created BranchInfo

        Raises:
            InvalidBranch: empty id or the main-sequence name
            DuplicateBranch: id already used in this session
            SequenceCycle: the parent's ancestry reaches the new branch
            DanglingReference: parent sequence or fork thought missing
            LimitExceeded: max_branches_per_session reached
        """
        check_branch_id(branch_id)

        if branch_id in self._branches:
            raise DuplicateBranch(
                f"Branch '{branch_id}' already exists",
                {"branch_id": branch_id},
            )

        if parent_sequence == branch_id or branch_id in self._walk_ancestry(parent_sequence):
            raise SequenceCycle(
                f"Branch '{branch_id}' cannot fork from its own descendant '{parent_sequence}'",
                {"branch_id": branch_id, "parent_sequence": parent_sequence},
            )

        if not self.sequence_exists(parent_sequence):
            raise DanglingReference(
                f"Parent sequence '{parent_sequence}' does not exist",
                {"branch_id": branch_id, "parent_sequence": parent_sequence},
            )
        if not self.store.contains(parent_sequence, branch_point):
            raise DanglingReference(
                f"Cannot branch from thought {branch_point}: not found in '{parent_sequence}'",
                {"branch_id": branch_id, "parent_sequence": parent_sequence, "branch_point": branch_point},
            )

        if len(self._branches) >= self.max_branches:
            raise LimitExceeded(
                f"Session already has {len(self._branches)} branches (max {self.max_branches})",
                {"limit": "max_branches_per_session", "max": self.max_branches},
            )

        info = BranchInfo(
            branch_id=branch_id,
            parent_sequence=parent_sequence,
            branch_point=branch_point,
            depth=self.depth(parent_sequence) + 1,
        )
        self._branches[branch_id] = info
        return info

    def discard(self, branch_id: str) -> None:
        """Drop a branch that never received a thought."""
        if not self.store.is_empty(branch_id):
            raise InvalidBranch(
                f"Branch '{branch_id}' holds thoughts and cannot be discarded",
                {"branch_id": branch_id},
            )
        self._branches.pop(branch_id, None)

    def _walk_ancestry(self, sequence: str) -> List[str]:
        chain = []
        seen = set()
        current = sequence
        while current != MAIN_SEQUENCE and current in self._branches and current not in seen:
            seen.add(current)
            current = self._branches[current].parent_sequence
            chain.append(current)
        return chain

    # =========================================================================
    # Reads
    # =========================================================================

    def has(self, branch_id: str) -> bool:
        return branch_id in self._branches

    def sequence_exists(self, sequence: str) -> bool:
        return sequence == MAIN_SEQUENCE or sequence in self._branches

    def get(self, branch_id: str) -> BranchInfo:
        info = self._branches.get(branch_id)
        if info is None:
            raise NotFound(f"Branch '{branch_id}' not found", {"branch_id": branch_id})
        return info

    def list_branches(self) -> List[BranchInfo]:
        """Branches in creation order."""
        return list(self._branches.values())

    def ancestry(self, branch_id: str) -> List[str]:
        """Parent sequences of a branch, nearest first, ending with MAIN_SEQUENCE."""
        self.get(branch_id)
        return self._walk_ancestry(branch_id)

    def depth(self, sequence: str) -> int:
        """0 for the main sequence, 1 for a branch off main, and so on."""
        if sequence == MAIN_SEQUENCE:
            return 0
        return self.get(sequence).depth

    def max_depth(self) -> int:
        return max((b.depth for b in self._branches.values()), default=0)

    def children_of(self, sequence: str, number: int) -> List[BranchInfo]:
        """Branches forking `sequence` at thought `number`, in creation order."""
        return [
            b for b in self._branches.values()
            if b.parent_sequence == sequence and b.branch_point == number
        ]

    def __len__(self) -> int:
        return len(self._branches)

    def __contains__(self, branch_id: str) -> bool:
        return branch_id in self._branches
