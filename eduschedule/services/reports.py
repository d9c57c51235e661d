"""Read-only views over the application state.

Nothing here is cached or stored; every view is recomputed from the
current session list.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from eduschedule.engine.curriculum import display_name, pair_key, subjects_for_class
from eduschedule.engine.progress import calculate_progress, percent_of, sequence_info
from eduschedule.engine.status import resolve_status
from eduschedule.engine.temporal import parse_local
from eduschedule.schemas import (
    AppState,
    ClassEntity,
    CompletedPair,
    PairProgress,
    Session,
    SessionStatus,
    SessionView,
    Subject,
    SubjectProgressRow,
    Teacher,
    TeacherWorkload,
)


BILLABLE_STATUSES = (SessionStatus.PENDING, SessionStatus.ONGOING, SessionStatus.COMPLETED)
OVERVIEW_ORDER = {"in-progress": 1, "upcoming": 2, "completed": 3}


@dataclass
class Lookups:
    subjects: Dict[str, Subject]
    teachers: Dict[str, Teacher]
    classes: Dict[str, ClassEntity]

    @classmethod
    def from_state(cls, state: AppState) -> "Lookups":
        return cls(
            subjects={s.id: s for s in state.subjects},
            teachers={t.id: t for t in state.teachers},
            classes={c.id: c for c in state.classes},
        )


def session_view(session: Session, sessions: List[Session], lookups: Lookups, today: date) -> SessionView:
    subject = lookups.subjects.get(session.subject_id)
    total = subject.total_periods if subject else None
    sequence = None
    if session.kind == "class" and total is not None:
        sequence = sequence_info(session, sessions, total)
    return SessionView(
        **session.model_dump(),
        effective_status=resolve_status(session.date, session.start_period, session.status, today=today),
        subject_name=display_name(lookups.subjects, session.subject_id),
        teacher_name=display_name(lookups.teachers, session.teacher_id),
        class_name=display_name(lookups.classes, session.class_id),
        total_periods=total,
        sequence=sequence,
    )


def class_overview(state: AppState, class_entity: ClassEntity, today: date) -> List[SubjectProgressRow]:
    rows: List[SubjectProgressRow] = []
    for subject in subjects_for_class(class_entity, state.subjects):
        relevant = [
            s for s in state.schedules
            if s.subject_id == subject.id and s.class_id == class_entity.id and s.status != SessionStatus.OFF
        ]
        # only periods that have already happened (or happen today) count as realized
        realized = sum(s.period_count for s in relevant if parse_local(s.date) <= today)
        started = any(parse_local(s.date) <= today for s in relevant)
        is_manual = pair_key(subject.id, class_entity.id) in state.manual_completed
        is_auto = realized >= subject.total_periods

        if is_auto or is_manual:
            status = "completed"
        elif started:
            status = "in-progress"
        else:
            status = "upcoming"

        rows.append(SubjectProgressRow(
            subject_id=subject.id,
            subject_name=subject.name,
            total_periods=subject.total_periods,
            learned_periods=realized,
            percentage=percent_of(realized, subject.total_periods),
            status=status,
            is_auto_completed=is_auto,
            is_manually_completed=is_manual,
        ))
    rows.sort(key=lambda r: OVERVIEW_ORDER[r.status])
    return rows


def teacher_workload(state: AppState) -> List[TeacherWorkload]:
    result: List[TeacherWorkload] = []
    for teacher in state.teachers:
        periods = sum(
            s.period_count for s in state.schedules
            if s.teacher_id == teacher.id and s.status in BILLABLE_STATUSES
        )
        if periods > 0:
            result.append(TeacherWorkload(
                teacher_id=teacher.id,
                teacher_name=teacher.name,
                total_periods=periods,
                total_income=periods * teacher.rate_per_period,
            ))
    return result


def subjects_in_progress(state: AppState) -> List[PairProgress]:
    result: List[PairProgress] = []
    for cls in state.classes:
        for subject in subjects_for_class(cls, state.subjects):
            progress = calculate_progress(subject.id, cls.id, subject.total_periods, state.schedules)
            if progress.learned > 0 and progress.remaining > 0:
                result.append(PairProgress(
                    subject_id=subject.id,
                    class_id=cls.id,
                    subject_name=subject.name,
                    class_name=cls.name,
                    total=progress.total,
                    learned=progress.learned,
                    remaining=progress.remaining,
                ))
    return result


def completed_pairs(state: AppState, lookups: Optional[Lookups] = None) -> List[CompletedPair]:
    """Finished subject/class pairs that have not been marked paid yet."""
    lookups = lookups or Lookups.from_state(state)
    result: List[CompletedPair] = []
    for cls in state.classes:
        for subject in subjects_for_class(cls, state.subjects):
            key = pair_key(subject.id, cls.id)
            if key in state.paid:
                continue
            progress = calculate_progress(subject.id, cls.id, subject.total_periods, state.schedules)
            if not progress.is_complete:
                continue
            teacher_ids: List[str] = []
            for s in state.schedules:
                if (s.subject_id == subject.id and s.class_id == cls.id and s.status != SessionStatus.OFF
                        and s.teacher_id not in teacher_ids):
                    teacher_ids.append(s.teacher_id)
            names = ", ".join(display_name(lookups.teachers, tid) for tid in teacher_ids)
            result.append(CompletedPair(
                unique_key=key,
                subject_id=subject.id,
                class_id=cls.id,
                subject_name=subject.name,
                class_name=cls.name,
                teacher_names=names or "Unassigned",
                total_periods=subject.total_periods,
            ))
    return result


def missed_sessions(state: AppState) -> List[Session]:
    return [s for s in state.schedules if s.status == SessionStatus.OFF]
