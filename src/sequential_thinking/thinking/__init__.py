"""
Sequential thinking session engine.

Thought storage, revisions, branches, progress, analytics, merge, export
and the session registry. The external operations live in
sequential_thinking.thinking.service.
"""

from .record import MAIN_SEQUENCE, ThoughtRecord
from .locks import ReadWriteLock
from .store import ThoughtStore
from .revisions import RevisionTracker
from .branches import BranchInfo, BranchManager
from .session import SessionMetadata, ThinkingSession
from .progress import ProgressReport, estimate_progress
from .analytics import AnalyticsSnapshot, analyze
from .merge import MergeStrategy, merge_sessions
from .export import ExportDocument, ExportFormat, export_session
from .registry import SessionRegistry

__all__ = [
    "MAIN_SEQUENCE",
    "ThoughtRecord",
    "ReadWriteLock",
    "ThoughtStore",
    "RevisionTracker",
    "BranchInfo",
    "BranchManager",
    "SessionMetadata",
    "ThinkingSession",
    "ProgressReport",
    "estimate_progress",
    "AnalyticsSnapshot",
    "analyze",
    "MergeStrategy",
    "merge_sessions",
    "ExportDocument",
    "ExportFormat",
    "export_session",
    "SessionRegistry",
]
