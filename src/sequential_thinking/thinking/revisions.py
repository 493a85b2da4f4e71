"""
Revision Tracker

Read-only view of how thoughts in one sequence supersede each other.
Nothing is stored here; chains are recomputed from the ThoughtStore on
every call. A record may only revise a lower-numbered record of its own
sequence, so every chain terminates.
"""

from typing import List, Set

from .record import MAIN_SEQUENCE
from .store import ThoughtStore


class RevisionTracker:
    """Revision chains for a single sequence of a store."""

    def __init__(self, store: ThoughtStore, sequence: str = MAIN_SEQUENCE):
        self.store = store
        self.sequence = sequence

    def revision_chain(self, number: int) -> List[int]:
        """
        Numbers of the records that transitively revise `number`, newest last.

        A record belongs to the chain if its revision_of is `number` or any
        number already in the chain.

        Raises:
            NotFound: `number` is not in the sequence
        """
        self.store.get(self.sequence, number)

        targets = {number}
        chain = []
        for record in self.store.sequence(self.sequence):
            if record.number <= number:
                continue
            if record.revision_of in targets:
                chain.append(record.number)
                targets.add(record.number)
        return chain

    def effective_content(self, number: int) -> str:
        """Text of the latest revision of `number`, or its own text when unrevised."""
        chain = self.revision_chain(number)
        latest = chain[-1] if chain else number
        return self.store.get(self.sequence, latest).text

    def revised_numbers(self) -> Set[int]:
        """Numbers that have at least one direct revision."""
        return {
            r.revision_of
            for r in self.store.sequence(self.sequence)
            if r.revision_of is not None
        }
