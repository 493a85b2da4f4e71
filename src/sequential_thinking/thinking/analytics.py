"""
Analytics Engine

Summarizes a session into an immutable AnalyticsSnapshot: counts,
ratios, branch depth, efficiency signals, heuristic labels describing how
the thinking unfolded, quality scores, insights and recommendations.
Analytics only read; they never touch session state.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..exceptions import EmptySession
from .progress import estimate_progress
from .record import MAIN_SEQUENCE, ThoughtRecord

if TYPE_CHECKING:
    from .session import ThinkingSession


# Complexity trend thresholds on the relative change of average text length
TREND_CHANGE_THRESHOLD = 0.2
TREND_STABLE_THRESHOLD = 0.1

ANALYTICAL_MIN_THOUGHTS = 10

# Quality scoring
COHERENCE_PREFIX_LENGTH = 10
COMPLETENESS_MIN_LENGTH = 20.0
COMPLETENESS_FULL_LENGTH = 100.0
CLARITY_MIN_WORDS = 5
CLARITY_MAX_LENGTH = 500
SHORT_THOUGHT_LENGTH = 10
LONG_THOUGHT_LENGTH = 1000

# Insight and recommendation thresholds
HIGH_REVISION_FREQUENCY = 0.3
EXPLORATORY_BRANCHING_FREQUENCY = 0.2
EFFICIENT_SCORE = 0.8
LOW_EFFICIENCY_SCORE = 0.6
LOW_QUALITY_SCORE = 0.7


@dataclass(frozen=True)
class QualityMetrics:
    """Heuristic 0..1 scores for how well a session reads."""
    coherence_score: float
    logical_flow_score: float
    completeness_score: float
    clarity_score: float
    overall_quality_score: float
    quality_issues: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coherence_score": self.coherence_score,
            "logical_flow_score": self.logical_flow_score,
            "completeness_score": self.completeness_score,
            "clarity_score": self.clarity_score,
            "overall_quality_score": self.overall_quality_score,
            "quality_issues": [dict(i) for i in self.quality_issues],
        }


@dataclass(frozen=True)
class AnalyticsSnapshot:
    session_id: str
    total_thoughts: int
    main_thoughts: int
    branch_thoughts: int
    revision_count: int
    revision_ratio: float
    branch_count: int
    max_branch_depth: int
    average_thought_length: float
    efficiency: Optional[float]
    completion_ratio: float
    complexity_trend: str
    thinking_style: str
    session_duration_seconds: float
    revision_frequency: float
    branching_frequency: float
    efficiency_score: float
    quality: QualityMetrics
    thoughts_per_sequence: Dict[str, int] = field(default_factory=dict)
    patterns: List[Dict[str, Any]] = field(default_factory=list)
    insights: List[Dict[str, Any]] = field(default_factory=list)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "total_thoughts": self.total_thoughts,
            "main_thoughts": self.main_thoughts,
            "branch_thoughts": self.branch_thoughts,
            "revision_count": self.revision_count,
            "revision_ratio": self.revision_ratio,
            "branch_count": self.branch_count,
            "max_branch_depth": self.max_branch_depth,
            "average_thought_length": self.average_thought_length,
            "efficiency": self.efficiency,
            "completion_ratio": self.completion_ratio,
            "complexity_trend": self.complexity_trend,
            "thinking_style": self.thinking_style,
            "session_duration_seconds": self.session_duration_seconds,
            "thoughts_per_sequence": dict(self.thoughts_per_sequence),
            "revision_frequency": self.revision_frequency,
            "branching_frequency": self.branching_frequency,
            "efficiency_score": self.efficiency_score,
            "quality": self.quality.to_dict(),
            "patterns": [dict(p) for p in self.patterns],
            "insights": [dict(i) for i in self.insights],
            "recommendations": [dict(r) for r in self.recommendations],
        }


def analyze(session: "ThinkingSession") -> AnalyticsSnapshot:
    """
    Compute analytics for a session. Caller holds the session's read lock.

    Raises:
        EmptySession: the session has no thoughts in any sequence
    """
    records = session.store.all_records()
    if not records:
        raise EmptySession(
            f"Session '{session.session_id}' has no thoughts to analyze",
            {"session_id": session.session_id},
        )

    total = len(records)
    main_count = len(session.store.sequence(MAIN_SEQUENCE))
    branch_records = total - main_count
    revisions = sum(1 for r in records if r.is_revision)

    meta = session.metadata
    efficiency = None
    if meta.completed and meta.completed_declared_total:
        efficiency = round(meta.completed_at_number / meta.completed_declared_total, 4)

    revision_freq = _frequency(revisions, total)
    branching_freq = _frequency(branch_records, total)
    score = efficiency_score(total, revisions, branch_records)
    quality = quality_metrics(records)

    per_sequence = {
        name: len(session.store.sequence(name))
        for name in session.store.sequence_names()
    }

    return AnalyticsSnapshot(
        session_id=session.session_id,
        total_thoughts=total,
        main_thoughts=main_count,
        branch_thoughts=branch_records,
        revision_count=revisions,
        revision_ratio=round(revisions / total, 4),
        branch_count=len(session.branches),
        max_branch_depth=session.branches.max_depth(),
        average_thought_length=round(sum(len(r.text) for r in records) / total, 2),
        efficiency=efficiency,
        completion_ratio=estimate_progress(session).completion_ratio,
        complexity_trend=complexity_trend(records),
        thinking_style=thinking_style(total, revisions, branch_records),
        session_duration_seconds=round(
            (records[-1].created_at - records[0].created_at).total_seconds(), 3
        ),
        revision_frequency=revision_freq,
        branching_frequency=branching_freq,
        efficiency_score=score,
        quality=quality,
        thoughts_per_sequence=per_sequence,
        patterns=identify_patterns(total, revisions, branch_records),
        insights=generate_insights(revision_freq, branching_freq, score),
        recommendations=generate_recommendations(score, quality.overall_quality_score),
    )


def complexity_trend(records: List[ThoughtRecord]) -> str:
    """
    Compare the average text length of the first and last thirds.

    Returns one of "increasing", "decreasing", "stable" or "variable".
    Fewer than three thoughts are always "stable".
    """
    if len(records) < 3:
        return "stable"

    lengths = [len(r.text) for r in records]
    third = len(lengths) // 3
    first = lengths[:third]
    last = lengths[len(lengths) - third:]

    avg_first = sum(first) / len(first)
    avg_last = sum(last) / len(last)
    change = (avg_last - avg_first) / max(avg_first, 1.0)

    if change > TREND_CHANGE_THRESHOLD:
        return "increasing"
    if change < -TREND_CHANGE_THRESHOLD:
        return "decreasing"
    if abs(change) < TREND_STABLE_THRESHOLD:
        return "stable"
    return "variable"


def thinking_style(total: int, revisions: int, branch_records: int) -> str:
    if revisions > total // 3:
        return "iterative"
    if branch_records > total // 4:
        return "exploratory"
    if revisions == 0 and branch_records == 0:
        return "linear"
    if total > ANALYTICAL_MIN_THOUGHTS:
        return "analytical"
    return "mixed"


def identify_patterns(total: int, revisions: int, branch_records: int) -> List[Dict[str, Any]]:
    patterns = []
    if revisions > total // 4:
        patterns.append({
            "pattern_type": "frequent_revisions",
            "description": "High frequency of thought revisions",
            "frequency": revisions,
        })
    if branch_records > total // 5:
        patterns.append({
            "pattern_type": "branching_exploration",
            "description": "Exploratory thinking with multiple branches",
            "frequency": branch_records,
        })
    if revisions == 0 and branch_records == 0 and total > 3:
        patterns.append({
            "pattern_type": "linear_progression",
            "description": "Straightforward linear thinking process",
            "frequency": total,
        })
    return patterns


def _frequency(count: int, total: int) -> float:
    # Measured against the steps after the first thought
    if total < 2:
        return 0.0
    return round(count / (total - 1), 4)


def efficiency_score(total: int, revisions: int, branch_records: int) -> float:
    """1.0 for a straight run, lowered by the share of revisions and branch thoughts."""
    if total == 0:
        return 0.0
    score = 1.0 - (revisions / total) * 0.3 - (branch_records / total) * 0.2
    return round(max(score, 0.0), 4)


# =============================================================================
# Quality
# =============================================================================

def quality_metrics(records: List[ThoughtRecord]) -> QualityMetrics:
    """Score coherence, logical flow, completeness and clarity of thoughts in acceptance order."""
    coherence = coherence_score(records)
    flow = logical_flow_score(records)
    completeness = completeness_score(records)
    clarity = clarity_score(records)
    return QualityMetrics(
        coherence_score=coherence,
        logical_flow_score=flow,
        completeness_score=completeness,
        clarity_score=clarity,
        overall_quality_score=round((coherence + flow + completeness + clarity) / 4, 4),
        quality_issues=identify_quality_issues(records),
    )


def coherence_score(records: List[ThoughtRecord]) -> float:
    """
    Penalize 0.1 for each plain main-sequence step that does not pick up the
    opening words of the previous thought. Revisions and branch thoughts are
    allowed to change direction.
    """
    if len(records) < 2:
        return 1.0

    score = 1.0
    for prev, curr in zip(records, records[1:]):
        prefix = prev.text.lower()[:COHERENCE_PREFIX_LENGTH]
        if prefix in curr.text.lower():
            continue
        if curr.is_revision or curr.branch_id is not None:
            continue
        score -= 0.1
    return round(max(score, 0.0), 4)


def logical_flow_score(records: List[ThoughtRecord]) -> float:
    """Penalize 0.1 for each revision beyond the second in a row."""
    if not records:
        return 0.0

    score = 1.0
    consecutive = 0
    for record in records:
        if record.is_revision:
            consecutive += 1
            if consecutive > 2:
                score -= 0.1
        else:
            consecutive = 0
    return round(max(score, 0.0), 4)


def completeness_score(records: List[ThoughtRecord]) -> float:
    """0.5 below 20 characters on average, 1.0 above 100, linear in between."""
    if not records:
        return 0.0

    avg_length = sum(len(r.text) for r in records) / len(records)
    if avg_length < COMPLETENESS_MIN_LENGTH:
        return 0.5
    if avg_length > COMPLETENESS_FULL_LENGTH:
        return 1.0
    span = COMPLETENESS_FULL_LENGTH - COMPLETENESS_MIN_LENGTH
    return round(0.5 + (avg_length - COMPLETENESS_MIN_LENGTH) / span * 0.5, 4)


def clarity_score(records: List[ThoughtRecord]) -> float:
    """Penalize terse thoughts (under five words) and rambling ones (over 500 characters)."""
    if not records:
        return 0.0

    score = 1.0
    for record in records:
        if len(record.text.split()) < CLARITY_MIN_WORDS:
            score -= 0.1
        if len(record.text) > CLARITY_MAX_LENGTH:
            score -= 0.05
    return round(max(score, 0.0), 4)


def identify_quality_issues(records: List[ThoughtRecord]) -> List[Dict[str, Any]]:
    issues = []
    for position, record in enumerate(records, start=1):
        if len(record.text) < SHORT_THOUGHT_LENGTH:
            issues.append(_quality_issue("short_thought", "Thought is too short", "minor", position, record))
        if len(record.text) > LONG_THOUGHT_LENGTH:
            issues.append(_quality_issue("long_thought", "Thought is too long", "moderate", position, record))
    return issues


def _quality_issue(
    issue_type: str,
    description: str,
    severity: str,
    position: int,
    record: ThoughtRecord,
) -> Dict[str, Any]:
    return {
        "issue_type": issue_type,
        "description": description,
        "severity": severity,
        "position": position,
        "sequence": record.sequence,
        "thought_number": record.number,
    }


# =============================================================================
# Insights and recommendations
# =============================================================================

def generate_insights(
    revision_frequency: float,
    branching_frequency: float,
    score: float,
) -> List[Dict[str, Any]]:
    insights = []
    if revision_frequency > HIGH_REVISION_FREQUENCY:
        insights.append({
            "insight_type": "high_revision_rate",
            "description": "High frequency of thought revisions suggests iterative thinking process",
            "confidence": 0.8,
        })
    if score > EFFICIENT_SCORE:
        insights.append({
            "insight_type": "efficient_thinking",
            "description": "High efficiency score indicates effective problem-solving approach",
            "confidence": 0.9,
        })
    if branching_frequency > EXPLORATORY_BRANCHING_FREQUENCY:
        insights.append({
            "insight_type": "exploratory_thinking",
            "description": "Multiple branches indicate exploratory thinking approach",
            "confidence": 0.7,
        })
    return insights


def generate_recommendations(score: float, overall_quality: float) -> List[Dict[str, Any]]:
    recommendations = []
    if score < LOW_EFFICIENCY_SCORE:
        recommendations.append({
            "recommendation_type": "improve_efficiency",
            "description": "Consider reducing revisions and branches to improve efficiency",
            "priority": "high",
            "expected_impact": "20% improvement in efficiency",
            "implementation_difficulty": "medium",
        })
    if overall_quality < LOW_QUALITY_SCORE:
        recommendations.append({
            "recommendation_type": "improve_quality",
            "description": "Focus on thought clarity and logical flow",
            "priority": "medium",
            "expected_impact": "15% improvement in quality",
            "implementation_difficulty": "easy",
        })
    return recommendations
