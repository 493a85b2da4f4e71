"""
Sequential Thinking Exception Hierarchy

Contains all exception classes raised by the thinking session engine.

Every error is a local validation failure detected before any mutation,
so a raised error always leaves session state untouched. Errors are
never retried internally; the tool layer converts them into error
responses with to_response().
"""

from typing import Any, Dict, Optional


class ThinkingError(Exception):
    """
    Base exception for all thinking engine operations.

    Attributes:
        kind: Stable error kind name reported to MCP clients
        message: Human-readable description
        details: Optional structured context (numbers, ids)
    """

    kind = "ThinkingError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, **extra_fields) -> Dict[str, Any]:
        """Convert to a tool response dict."""
        response = {
            "success": False,
            "error": self.message,
            "error_kind": self.kind,
        }
        if self.details:
            response["details"] = self.details
        response.update(extra_fields)
        return response


class NotFound(ThinkingError):
    """Raised when a session, thought, or branch does not exist."""
    kind = "NotFound"


class InvalidNumbering(ThinkingError):
    """Raised when a thought number does not exceed every number already in its sequence."""
    kind = "InvalidNumbering"


class DanglingReference(ThinkingError):
    """Raised when revision_of or branch_point names a thought that does not exist."""
    kind = "DanglingReference"


class SequenceCycle(ThinkingError):
    """Raised when a branch's ancestry would loop back onto itself."""
    kind = "SequenceCycle"


class DuplicateBranch(ThinkingError):
    """Raised when creating a branch whose id already exists in the session."""
    kind = "DuplicateBranch"


class InvalidBranch(ThinkingError):
    """
    Raised for malformed branch usage.

    Covers a branch named after the main sequence, an empty branch id, and a
    branch record whose fork point disagrees with the branch's recorded fork.
    """
    kind = "InvalidBranch"


class LimitExceeded(ThinkingError):
    """Raised when a configured limit (thoughts, branches, sessions, text length) is reached."""
    kind = "LimitExceeded"


class EmptySession(ThinkingError):
    """Raised when analytics are requested for a session without thoughts."""
    kind = "EmptySession"


class EmptyMergeSet(ThinkingError):
    """Raised when merge is called with no sessions."""
    kind = "EmptyMergeSet"


class MergeConflict(ThinkingError):
    """Raised when branch ids collide during a merge that does not allow renaming."""
    kind = "MergeConflict"


class UnsupportedFormat(ThinkingError):
    """Raised when an export format name is not recognized."""
    kind = "UnsupportedFormat"


__all__ = [
    "ThinkingError",
    "NotFound",
    "InvalidNumbering",
    "DanglingReference",
    "SequenceCycle",
    "DuplicateBranch",
    "InvalidBranch",
    "LimitExceeded",
    "EmptySession",
    "EmptyMergeSet",
    "MergeConflict",
    "UnsupportedFormat",
]
