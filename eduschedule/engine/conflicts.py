from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional, Union

from eduschedule.engine.temporal import parse_local, period_end
from eduschedule.schemas import ConflictResult, SessionDraft, SessionStatus, Subject


SubjectLookup = Union[Mapping[str, Subject], Iterable[Subject]]


def as_subject_map(subjects: Optional[SubjectLookup]) -> Dict[str, Subject]:
    if subjects is None:
        return {}
    if isinstance(subjects, Mapping):
        return dict(subjects)
    return {s.id: s for s in subjects}


def sessions_overlap(a: SessionDraft, b: SessionDraft) -> bool:
    if parse_local(a.date) != parse_local(b.date):
        return False
    a_end = period_end(a.start_period, a.period_count)
    b_end = period_end(b.start_period, b.period_count)
    return a.start_period < b_end and a_end > b.start_period


def is_shared_pair(a: SessionDraft, b: SessionDraft, subjects: Mapping[str, Subject]) -> bool:
    """Both sessions teach the same shared subject (merged classes)."""
    sa = subjects.get(a.subject_id)
    sb = subjects.get(b.subject_id)
    if sa is None or sb is None:
        return False
    return sa.is_shared and sb.is_shared and sa.name == sb.name


def check_conflict(
    candidate: SessionDraft,
    existing: Iterable[SessionDraft],
    subjects: Optional[SubjectLookup] = None,
    exclude_id: Optional[str] = None,
) -> ConflictResult:
    subject_map = as_subject_map(subjects)

    for item in existing:
        item_id = getattr(item, "id", None)
        if exclude_id is not None and item_id == exclude_id:
            continue
        if getattr(item, "status", None) == SessionStatus.OFF:
            continue
        if not sessions_overlap(candidate, item):
            continue

        exempt = is_shared_pair(candidate, item, subject_map)
        if item.room_id == candidate.room_id and not exempt:
            return ConflictResult(has_conflict=True, message=f"Room {item.room_id} is already occupied at this time.")
        if item.teacher_id == candidate.teacher_id and not exempt:
            return ConflictResult(has_conflict=True, message="This teacher is already teaching another class at this time.")
        # a class can never be in two places at once, shared or not
        if item.class_id == candidate.class_id:
            if item.kind == "exam" and candidate.kind == "class":
                return ConflictResult(has_conflict=True, message="This class has an exam at this time.")
            if item.kind == "class" and candidate.kind == "exam":
                return ConflictResult(has_conflict=True, message="This class has a lesson at this time.")
            return ConflictResult(has_conflict=True, message="This class already has a session at this time.")

    return ConflictResult(has_conflict=False)
