"""
Thought Store

Append-only storage for the thoughts of one session: the main sequence
plus one independently numbered sequence per branch.

Every check in append() runs before the first mutation, so a rejected
record leaves the store exactly as it was.
"""

from typing import Dict, Iterator, List, Optional

from ..config import DEFAULT_MAX_THOUGHT_LENGTH, DEFAULT_MAX_THOUGHTS
from ..exceptions import DanglingReference, InvalidNumbering, LimitExceeded, NotFound
from .record import MAIN_SEQUENCE, ThoughtRecord


class ThoughtStore:
    """
    Per-session thought storage keyed by sequence name.

    The main sequence always exists (possibly empty). Branch sequences
    appear on their first append; branch existence itself is tracked by
    the BranchManager.
    """

    def __init__(
        self,
        max_thoughts: int = DEFAULT_MAX_THOUGHTS,
        max_thought_length: int = DEFAULT_MAX_THOUGHT_LENGTH,
    ):
        self.max_thoughts = max_thoughts
        self.max_thought_length = max_thought_length
        self._sequences: Dict[str, List[ThoughtRecord]] = {MAIN_SEQUENCE: []}
        self._index: Dict[str, Dict[int, ThoughtRecord]] = {MAIN_SEQUENCE: {}}
        self._accepted: List[ThoughtRecord] = []

    # =========================================================================
    # Writes
    # =========================================================================

    def validate(self, record: ThoughtRecord) -> None:
        """
        Check that record could be appended, without storing it.

        Raises:
            InvalidNumbering: number or declared_total not positive, or number
                not above every number already in the target sequence
            DanglingReference: revision_of names a thought not in the sequence
            LimitExceeded: thought limit reached or text too long
        """
        sequence = record.sequence

        if record.number < 1:
            raise InvalidNumbering(
                f"Thought number must be positive, got {record.number}",
                {"sequence": sequence, "number": record.number},
            )
        if record.declared_total < 1:
            raise InvalidNumbering(
                f"Total thoughts must be positive, got {record.declared_total}",
                {"sequence": sequence, "declared_total": record.declared_total},
            )

        last = self.last_number(sequence)
        if last is not None and record.number <= last:
            raise InvalidNumbering(
                f"Thought {record.number} in '{sequence}' must be greater than {last}",
                {"sequence": sequence, "number": record.number, "last_number": last},
            )

        if record.revision_of is not None and not self.contains(sequence, record.revision_of):
            raise DanglingReference(
                f"Cannot revise thought {record.revision_of}: not found in '{sequence}'",
                {"sequence": sequence, "revision_of": record.revision_of},
            )

        if len(self._accepted) >= self.max_thoughts:
            raise LimitExceeded(
                f"Session already holds {len(self._accepted)} thoughts (max {self.max_thoughts})",
                {"limit": "max_thoughts_per_session", "max": self.max_thoughts},
            )
        if len(record.text) > self.max_thought_length:
            raise LimitExceeded(
                f"Thought text is {len(record.text)} characters (max {self.max_thought_length})",
                {"limit": "max_thought_length", "max": self.max_thought_length},
            )

    def append(self, record: ThoughtRecord) -> ThoughtRecord:
        """Validate and store record. Returns the stored record."""
        self.validate(record)

        sequence = record.sequence
        self._sequences.setdefault(sequence, []).append(record)
        self._index.setdefault(sequence, {})[record.number] = record
        self._accepted.append(record)
        return record

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, sequence: str, number: int) -> ThoughtRecord:
        """
        Get one thought.

        Raises:
            NotFound: sequence or thought number absent
        """
        record = self._index.get(sequence, {}).get(number)
        if record is None:
            raise NotFound(
                f"Thought {number} not found in '{sequence}'",
                {"sequence": sequence, "number": number},
            )
        return record

    def sequence(self, name: str) -> List[ThoughtRecord]:
        """Records of a sequence in number order (empty if none)."""
        return list(self._sequences.get(name, ()))

    def numbers(self, name: str) -> List[int]:
        return [r.number for r in self._sequences.get(name, ())]

    def last_number(self, name: str) -> Optional[int]:
        records = self._sequences.get(name)
        if not records:
            return None
        return records[-1].number

    def contains(self, name: str, number: int) -> bool:
        return number in self._index.get(name, {})

    def is_empty(self, name: Optional[str] = None) -> bool:
        """True if the named sequence (or the whole store) holds no thoughts."""
        if name is None:
            return len(self._accepted) == 0
        return not self._sequences.get(name)

    def sequence_names(self) -> List[str]:
        """Sequences holding at least one thought, main first, then in creation order."""
        return [name for name, records in self._sequences.items() if records]

    def total_count(self) -> int:
        return len(self._accepted)

    def all_records(self) -> List[ThoughtRecord]:
        """Every thought in acceptance order."""
        return list(self._accepted)

    def __iter__(self) -> Iterator[ThoughtRecord]:
        return iter(self.all_records())

    def __len__(self) -> int:
        return len(self._accepted)
