"""
Tests for the Progress Estimator
"""

from conftest import make_record
from sequential_thinking.thinking.progress import estimate_progress


class TestProgress:
    """Test progress reporting on the main sequence."""

    def test_empty_session(self, session):
        """Test progress before any thought."""
        report = estimate_progress(session)

        assert report.highest_number_seen == 0
        assert report.current_declared_total == 0
        assert report.finished is False
        assert report.completion_ratio == 0.0

    def test_latest_declared_total_and_finished(self, session):
        """Test the 1/3, 2/5, 3/5 (done) scenario."""
        session.add_thought(make_record(1, total=3, continues=True))
        session.add_thought(make_record(2, total=5, continues=True))
        session.add_thought(make_record(3, total=5, continues=False))

        report = estimate_progress(session)

        assert report.highest_number_seen == 3
        assert report.current_declared_total == 5
        assert report.finished is True
        assert report.completion_ratio == 0.6

    def test_shrinking_estimate_is_reported(self, session):
        """Test that a lowered estimate replaces a higher one."""
        session.add_thought(make_record(1, total=10))
        session.add_thought(make_record(2, total=4))

        assert estimate_progress(session).current_declared_total == 4

    def test_branch_thoughts_do_not_advance_main(self, session):
        """Test that highest_number_seen only counts the main sequence."""
        session.add_thought(make_record(1))
        session.add_thought(make_record(9, branch_id="alt", branch_point=1))

        report = estimate_progress(session)
        assert report.highest_number_seen == 1
        assert report.active_branches == 1

    def test_completion_is_never_cleared(self, session):
        """Test that finished stays set after more thoughts arrive."""
        session.add_thought(make_record(1, total=1, continues=False))
        session.add_thought(make_record(2, total=3, continues=True))

        assert estimate_progress(session).finished is True

    def test_finished_early(self, session):
        """Test finishing before the declared total is reached."""
        session.add_thought(make_record(1, total=8))
        session.add_thought(make_record(2, total=8, continues=False))

        report = estimate_progress(session)
        assert report.finished is True
        assert report.needs_more_thoughts is False

    def test_needs_more_thoughts_hint(self, session):
        """Test that the expansion hint is reported even when finished."""
        session.add_thought(make_record(1, total=1, continues=False, needs_expansion=True))

        assert estimate_progress(session).needs_more_thoughts is True
