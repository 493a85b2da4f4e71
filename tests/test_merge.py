"""
Tests for Session Merge
"""

import pytest

from conftest import make_record
from sequential_thinking.config import ThinkingConfig
from sequential_thinking.exceptions import EmptyMergeSet, LimitExceeded, MergeConflict
from sequential_thinking.thinking.merge import MergeStrategy, merge_sessions
from sequential_thinking.thinking.record import MAIN_SEQUENCE
from sequential_thinking.thinking.session import ThinkingSession


def build_session(session_id, records, config=None):
    session = ThinkingSession(config or ThinkingConfig.for_testing(), session_id=session_id)
    for record, parent in records:
        session.add_thought(record, parent_branch_id=parent)
    return session


@pytest.fixture
def session_a():
    return build_session("a", [
        (make_record(1, total=3), None),
        (make_record(2, total=3), None),
        (make_record(3, total=3, continues=False), None),
    ])


@pytest.fixture
def session_b():
    return build_session("b", [
        (make_record(1, total=2, text="B one"), None),
        (make_record(2, total=2, text="B one revised", revision_of=1, continues=False), None),
    ])


class TestRenumbering:
    """Test main-sequence banding."""

    def test_two_sessions_form_contiguous_bands(self, session_a, session_b):
        """Test A(1..3) + B(1..2) gives 1..5 with B shifted by 3."""
        merged = merge_sessions([session_a, session_b])

        assert merged.store.numbers(MAIN_SEQUENCE) == [1, 2, 3, 4, 5]
        assert merged.store.get(MAIN_SEQUENCE, 4).text == "B one"
        assert merged.store.get(MAIN_SEQUENCE, 5).revision_of == 4

    def test_declared_totals_shifted(self, session_a, session_b):
        """Test that B's totals and completion move into its band."""
        merged = merge_sessions([session_a, session_b])

        assert merged.store.get(MAIN_SEQUENCE, 4).declared_total == 5
        assert merged.metadata.current_declared_total == 5
        assert merged.metadata.completed is True
        assert merged.metadata.completed_at_number == 5

    def test_sources_untouched(self, session_a, session_b):
        """Test that merge never mutates its inputs."""
        merge_sessions([session_a, session_b])

        assert session_b.store.numbers(MAIN_SEQUENCE) == [1, 2]
        assert session_b.store.get(MAIN_SEQUENCE, 2).revision_of == 1

    def test_single_source_keeps_numbers(self, session_b):
        """Test merging one session copies it."""
        merged = merge_sessions([session_b], title="Copy")

        assert merged.store.numbers(MAIN_SEQUENCE) == [1, 2]
        assert merged.title == "Copy"
        assert merged.session_id != session_b.session_id

    def test_empty_merge_set(self):
        """Test EmptyMergeSet for no sources."""
        with pytest.raises(EmptyMergeSet):
            merge_sessions([])

    def test_gaps_shift_by_highest_number(self):
        """Test that the band width is the highest number, not the count."""
        first = build_session("x", [(make_record(2), None), (make_record(6), None)])
        second = build_session("y", [(make_record(1), None)])

        merged = merge_sessions([first, second])

        assert merged.store.numbers(MAIN_SEQUENCE) == [2, 6, 7]

    def test_merged_session_respects_limits(self, session_a, session_b):
        """Test that replay applies the configured thought limit."""
        config = ThinkingConfig.for_testing(max_thoughts_per_session=4)

        with pytest.raises(LimitExceeded):
            merge_sessions([session_a, session_b], config=config)


class TestBranches:
    """Test branch shifting and collisions."""

    @pytest.fixture
    def first(self):
        return build_session("first", [
            (make_record(1), None),
            (make_record(2), None),
            (make_record(1, branch_id="alt", branch_point=2), None),
        ])

    @pytest.fixture
    def second(self):
        return build_session("second", [
            (make_record(1), None),
            (make_record(1, branch_id="alt", branch_point=1), None),
            (make_record(1, branch_id="deep", branch_point=1), "alt"),
        ])

    def test_main_fork_points_shift(self, first, second):
        """Test that branches off main follow their source's band."""
        merged = merge_sessions([first, second])

        renamed = merged.branches.get("alt-second")
        assert renamed.parent_sequence == MAIN_SEQUENCE
        assert renamed.branch_point == 3

    def test_renumber_renames_and_rewrites_children(self, first, second):
        """Test that nested branches follow their renamed parent."""
        merged = merge_sessions([first, second], MergeStrategy.RENUMBER)

        assert merged.branches.get("alt").branch_point == 2
        deep = merged.branches.get("deep")
        assert deep.parent_sequence == "alt-second"
        assert deep.branch_point == 1

    def test_renumber_same_session_twice(self, first):
        """Test that a repeated source still gets unique branch ids."""
        merged = merge_sessions([first, first])

        ids = [b.branch_id for b in merged.branches.list_branches()]
        assert ids == ["alt", "alt-first"]
        assert merged.store.numbers(MAIN_SEQUENCE) == [1, 2, 3, 4]

    def test_reject_on_collision(self, first, second):
        """Test MergeConflict for incompatible fork points."""
        with pytest.raises(MergeConflict):
            merge_sessions([first, second], MergeStrategy.REJECT_ON_COLLISION)

    def test_reject_same_session_twice(self, first):
        """Test that an identical branch in a later band still conflicts."""
        with pytest.raises(MergeConflict) as exc_info:
            merge_sessions([first, first], MergeStrategy.REJECT_ON_COLLISION)

        details = exc_info.value.details
        assert details["existing_branch_point"] == 2
        assert details["branch_point"] == 4

    def test_reject_repeated_source_with_nested_branch(self, second):
        """Test that the conflict is reported on the outermost colliding branch."""
        with pytest.raises(MergeConflict) as exc_info:
            merge_sessions([second, second], "reject_on_collision")

        assert exc_info.value.details["branch_id"] == "alt"

    def test_reject_strategy_without_collision(self, first, session_b):
        """Test that reject_on_collision merges when ids do not collide."""
        merged = merge_sessions([first, session_b], "reject_on_collision")

        assert merged.branches.has("alt")
        assert merged.store.numbers(MAIN_SEQUENCE) == [1, 2, 3, 4]

    def test_unknown_strategy(self, first):
        """Test that an unknown strategy name is rejected."""
        with pytest.raises(ValueError):
            merge_sessions([first], "shuffle")
