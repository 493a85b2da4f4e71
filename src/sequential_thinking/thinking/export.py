"""
Export Engine

Builds a structural document of a session: metadata, progress, the main
sequence and every branch with revisions resolved, and an analytics
snapshot. Turning the document into bytes (JSON, markup) is left to the
caller.

Export is a pure function of session state. No timestamps are taken at
export time, so exporting an unchanged session twice gives equal documents.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Union

from ..exceptions import UnsupportedFormat
from .analytics import analyze
from .progress import estimate_progress
from .record import MAIN_SEQUENCE, ThoughtRecord

if TYPE_CHECKING:
    from .session import ThinkingSession


class ExportFormat(str, Enum):
    """Shape of the exported document."""
    STRUCTURED = "structured"  # Machine-readable tree
    NARRATIVE = "narrative"    # Linearized text with branch call-outs

    @classmethod
    def parse(cls, value: Union["ExportFormat", str]) -> "ExportFormat":
        """
        Resolve a format name.

        Raises:
            UnsupportedFormat: unknown format name
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedFormat(
                f"Unsupported export format '{value}'. Use one of: "
                + ", ".join(f.value for f in cls),
                {"format": str(value)},
            ) from None


@dataclass(frozen=True)
class ExportDocument:
    format: ExportFormat
    content: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format.value, "content": self.content}


NARRATIVE_INDENT = "  "


def export_session(
    session: "ThinkingSession",
    format: Union[ExportFormat, str] = ExportFormat.STRUCTURED,
) -> ExportDocument:
    """
    Export a session. Caller holds the session's read lock.

    Raises:
        UnsupportedFormat: unknown format name
    """
    export_format = ExportFormat.parse(format)

    content: Dict[str, Any] = {
        "session": {
            "session_id": session.session_id,
            "title": session.title,
            **session.metadata.to_dict(),
        },
        "progress": estimate_progress(session).to_dict(),
    }

    if export_format is ExportFormat.STRUCTURED:
        content["main_sequence"] = _sequence_entries(session, MAIN_SEQUENCE)
        content["branches"] = [
            {
                **branch.to_dict(),
                "thoughts": _sequence_entries(session, branch.branch_id),
            }
            for branch in session.branches.list_branches()
        ]
    else:
        lines: List[str] = []
        _narrate(session, MAIN_SEQUENCE, 0, lines)
        content["lines"] = lines

    content["analytics"] = None if session.is_empty() else analyze(session).to_dict()

    return ExportDocument(format=export_format, content=content)


def _sequence_entries(session: "ThinkingSession", sequence: str) -> List[Dict[str, Any]]:
    tracker = session.revisions(sequence)
    entries = []
    for record in session.store.sequence(sequence):
        entry = record.to_dict()
        entry["revised_by"] = tracker.revision_chain(record.number)
        entry["effective_text"] = tracker.effective_content(record.number)
        entry["branches"] = [b.branch_id for b in session.branches.children_of(sequence, record.number)]
        entries.append(entry)
    return entries


def _describe(record: ThoughtRecord, effective_text: str) -> str:
    label = f"Thought {record.number}/{record.declared_total}"
    if record.revision_of is not None:
        label += f" (revises {record.revision_of})"
    text = effective_text if effective_text == record.text else f"{record.text} [now: {effective_text}]"
    return f"{label}: {text}"


def _narrate(session: "ThinkingSession", sequence: str, depth: int, lines: List[str]) -> None:
    indent = NARRATIVE_INDENT * depth
    tracker = session.revisions(sequence)
    for record in session.store.sequence(sequence):
        lines.append(indent + _describe(record, tracker.effective_content(record.number)))
        for branch in session.branches.children_of(sequence, record.number):
            lines.append(
                f"{indent}{NARRATIVE_INDENT}Branch '{branch.branch_id}' from {sequence} thought {record.number}:"
            )
            _narrate(session, branch.branch_id, depth + 1, lines)
