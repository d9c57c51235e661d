from __future__ import annotations
import math
from typing import Iterable, List

from eduschedule.engine.temporal import parse_local
from eduschedule.schemas import Progress, SequenceInfo, Session, SessionDraft, SessionStatus


def _counts(session: SessionDraft) -> bool:
    return getattr(session, "status", None) != SessionStatus.OFF


def percent_of(part: int, whole: int) -> int:
    """Whole percentage, halves rounded up, capped at 100."""
    return min(100, math.floor(part / whole * 100 + 0.5))


def learned_periods(subject_id: str, class_id: str, sessions: Iterable[SessionDraft]) -> int:
    return sum(
        s.period_count
        for s in sessions
        if s.subject_id == subject_id and s.class_id == class_id and _counts(s)
    )


def calculate_progress(subject_id: str, class_id: str, total_periods: int, sessions: Iterable[SessionDraft]) -> Progress:
    learned = learned_periods(subject_id, class_id, sessions)
    if total_periods > 0:
        percentage = percent_of(learned, total_periods)
    else:
        # misconfigured curriculum total
        percentage = 100 if learned > 0 else 0
    return Progress(
        learned=learned,
        total=total_periods,
        percentage=percentage,
        remaining=max(0, total_periods - learned),
    )


def ordered_pair_sessions(subject_id: str, class_id: str, sessions: Iterable[Session]) -> List[Session]:
    """Non-Off class sessions of a subject/class pair in teaching order."""
    selected = [
        s for s in sessions
        if s.subject_id == subject_id and s.class_id == class_id and s.kind == "class" and _counts(s)
    ]
    return sorted(selected, key=lambda s: (parse_local(s.date), s.start_period))


def sequence_info(session: Session, sessions: Iterable[Session], total_periods: int) -> SequenceInfo:
    ordered = ordered_pair_sessions(session.subject_id, session.class_id, sessions)
    cumulative = 0
    for item in ordered:
        before = cumulative
        cumulative += item.period_count
        if item.id == session.id:
            return SequenceInfo(
                cumulative=cumulative,
                is_first=before == 0,
                is_last=total_periods > 0 and cumulative >= total_periods,
                display_cumulative=min(cumulative, total_periods) if total_periods > 0 else cumulative,
            )
    # exams and Off sessions have no place in the sequence
    return SequenceInfo(cumulative=0, is_first=False, is_last=False, display_cumulative=0)
