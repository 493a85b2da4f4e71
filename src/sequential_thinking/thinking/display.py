"""
Boxed rendering of accepted thoughts for the stderr thought log.
"""

from typing import List

from ..logging_config import thought_logger
from .record import ThoughtRecord


def thought_header(record: ThoughtRecord) -> str:
    if record.is_revision:
        prefix = "🔄 Revision"
        context = f" (revising thought {record.revision_of})"
    elif record.branch_id is not None:
        prefix = "🌿 Branch"
        if record.branch_point is not None:
            context = f" (from thought {record.branch_point}, ID: {record.branch_id})"
        else:
            context = f" (ID: {record.branch_id})"
    else:
        prefix = "💭 Thought"
        context = ""
    return f"{prefix} {record.number}/{record.declared_total}{context}"


def format_thought(record: ThoughtRecord) -> str:
    """Render a record as a bordered box, header above the text."""
    header = thought_header(record)
    text_lines: List[str] = record.text.splitlines() or [""]
    width = max(len(header), *(len(line) for line in text_lines)) + 2
    border = "─" * width

    rows = [f"┌{border}┐", f"│ {header.ljust(width - 2)} │", f"├{border}┤"]
    rows.extend(f"│ {line.ljust(width - 2)} │" for line in text_lines)
    rows.append(f"└{border}┘")
    return "\n".join(rows)


def log_thought(record: ThoughtRecord) -> None:
    thought_logger.info("\n%s", format_thought(record))
