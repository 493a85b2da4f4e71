"""
Session Merge

Combines several sessions into a new one. Each source's main sequence is
shifted into its own band of numbers, in input order, and every reference
into that band is shifted with it. Sources are read one at a time under
their read lock and are never modified.

The merged session is built by replaying the shifted records through a
fresh ThinkingSession, so it is held to the same invariants and limits as
any other session.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..config import ThinkingConfig
from ..exceptions import EmptyMergeSet, MergeConflict
from ..logging_config import configure_logger_for_debug_trace
from .branches import BranchInfo
from .record import MAIN_SEQUENCE, ThoughtRecord
from .session import SessionMetadata, ThinkingSession

logger = configure_logger_for_debug_trace(__name__)


class MergeStrategy(str, Enum):
    """How colliding branch ids are handled."""
    RENUMBER = "renumber"                       # Rename the later branch (default)
    REJECT_ON_COLLISION = "reject_on_collision"  # Fail with MergeConflict on any collision


@dataclass
class _MergedBranch:
    parent_sequence: str
    branch_point: int


@dataclass
class _SourceView:
    """Consistent copy of what merge needs from one source."""
    session_id: str
    records: List[ThoughtRecord]
    branches: List[BranchInfo]
    highest_main: int
    metadata: SessionMetadata


def _read_source(session: ThinkingSession) -> _SourceView:
    with session.lock.read_locked():
        meta = session.metadata
        return _SourceView(
            session_id=session.session_id,
            records=session.store.all_records(),
            branches=session.branches.list_branches(),
            highest_main=session.store.last_number(MAIN_SEQUENCE) or 0,
            metadata=SessionMetadata(**vars(meta)),
        )


def merge_sessions(
    sources: Sequence[ThinkingSession],
    strategy: Union[MergeStrategy, str] = MergeStrategy.RENUMBER,
    config: Optional[ThinkingConfig] = None,
    title: Optional[str] = None,
    session_id: Optional[str] = None,
    clock: Callable[[], float] = time.monotonic,
) -> ThinkingSession:
    """
    Merge sessions, in order, into a new session.

    Args:
        sources: Sessions to merge; the first keeps its numbering
        strategy: MergeStrategy (or its value) for colliding branch ids
        config: Limits for the merged session
        title: Title of the merged session
        session_id: Id of the merged session (generated when None)
        clock: Monotonic clock for the merged session

    Returns:
        The new, unregistered session

    Raises:
        EmptyMergeSet: no sources given
        MergeConflict: a branch id collides under reject_on_collision
        LimitExceeded: the merged session would exceed the configured limits
    """
    if not sources:
        raise EmptyMergeSet("At least one session is required to merge")

    strategy = MergeStrategy(strategy)
    taken: Dict[str, _MergedBranch] = {}
    replay: List[Tuple[ThoughtRecord, Optional[str]]] = []
    final_meta: Optional[SessionMetadata] = None
    final_offset = 0
    offset = 0

    for index, source in enumerate(sources):
        view = _read_source(source)
        renames, parents = _assign_branch_ids(view, index, offset, strategy, taken)

        for record in view.records:
            replay.append(_shift_record(record, offset, renames, parents))

        if view.records:
            final_meta = view.metadata
            final_offset = offset
        offset += view.highest_main

    merged = ThinkingSession(config, session_id=session_id, title=title, clock=clock)
    with merged.lock.write_locked():
        for record, parent in replay:
            merged.add_thought(record, parent_branch_id=parent)
        if final_meta is not None:
            _apply_metadata(merged.metadata, final_meta, final_offset)

    logger.info(
        "Merged %d session(s) into %s (%d thoughts, %d branches, strategy=%s)",
        len(sources), merged.session_id, merged.store.total_count(),
        len(merged.branches), strategy.value,
    )
    return merged


def _assign_branch_ids(
    view: _SourceView,
    index: int,
    offset: int,
    strategy: MergeStrategy,
    taken: Dict[str, _MergedBranch],
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Map each source branch id to its merged id and merged parent sequence."""
    renames: Dict[str, str] = {}
    parents: Dict[str, str] = {}

    # Creation order puts every parent before its children
    for branch in view.branches:
        if branch.parent_sequence == MAIN_SEQUENCE:
            parent = MAIN_SEQUENCE
            fork = branch.branch_point + offset
        else:
            parent = renames[branch.parent_sequence]
            fork = branch.branch_point

        new_id = branch.branch_id
        existing = taken.get(new_id)
        if existing is not None:
            if strategy is MergeStrategy.RENUMBER:
                new_id = _disambiguate(branch.branch_id, view.session_id, index, taken)
            else:
                raise MergeConflict(
                    f"Branch '{branch.branch_id}' from session '{view.session_id}' "
                    "collides with a branch of the same id",
                    {
                        "branch_id": branch.branch_id,
                        "session_id": view.session_id,
                        "existing_parent": existing.parent_sequence,
                        "existing_branch_point": existing.branch_point,
                        "parent": parent,
                        "branch_point": fork,
                    },
                )

        renames[branch.branch_id] = new_id
        parents[branch.branch_id] = parent
        taken[new_id] = _MergedBranch(parent, fork)

    return renames, parents


def _disambiguate(branch_id: str, source_id: str, index: int, taken: Dict[str, _MergedBranch]) -> str:
    candidate = f"{branch_id}-{source_id}"
    if candidate not in taken:
        return candidate
    candidate = f"{branch_id}-{source_id}-{index}"
    suffix = 2
    while candidate in taken:
        candidate = f"{branch_id}-{source_id}-{index}-{suffix}"
        suffix += 1
    return candidate


def _shift_record(
    record: ThoughtRecord,
    offset: int,
    renames: Dict[str, str],
    parents: Dict[str, str],
) -> Tuple[ThoughtRecord, Optional[str]]:
    if record.branch_id is None:
        shifted = record.with_changes(
            number=record.number + offset,
            revision_of=None if record.revision_of is None else record.revision_of + offset,
            declared_total=record.declared_total + offset,
        )
        return shifted, None

    parent = parents[record.branch_id]
    branch_point = record.branch_point
    if branch_point is not None and parent == MAIN_SEQUENCE:
        branch_point += offset

    shifted = record.with_changes(
        branch_id=renames[record.branch_id],
        branch_point=branch_point,
        declared_total=record.declared_total + offset,
    )
    return shifted, parent


def _apply_metadata(target: SessionMetadata, source: SessionMetadata, offset: int) -> None:
    target.current_declared_total = source.current_declared_total + offset
    target.completed = source.completed
    target.needs_expansion = source.needs_expansion
    if source.completed_at_number is not None:
        target.completed_at_number = source.completed_at_number + offset
        target.completed_declared_total = source.completed_declared_total + offset
    else:
        target.completed_at_number = None
        target.completed_declared_total = None
