"""
Tests for the boxed thought rendering
"""

from conftest import make_record
from sequential_thinking.thinking.display import format_thought, thought_header


class TestThoughtDisplay:
    """Test headers and box layout."""

    def test_headers(self):
        assert thought_header(make_record(1, total=3)) == "💭 Thought 1/3"
        assert thought_header(make_record(3, total=3, revision_of=1)) == "🔄 Revision 3/3 (revising thought 1)"
        assert thought_header(make_record(1, total=3, branch_id="alt", branch_point=2)) == (
            "🌿 Branch 1/3 (from thought 2, ID: alt)"
        )
        assert thought_header(make_record(2, total=3, branch_id="alt")) == "🌿 Branch 2/3 (ID: alt)"

    def test_box_rows_share_width(self):
        """Test that every row of the box has the same length."""
        box = format_thought(make_record(1, text="first line\nsecond, longer line"))
        rows = box.splitlines()

        assert rows[0].startswith("┌") and rows[-1].startswith("└")
        assert len({len(row) for row in rows}) == 1
        assert len(rows) == 6
