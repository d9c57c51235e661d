from __future__ import annotations
from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from eduschedule.engine.conflicts import check_conflict
from eduschedule.engine.continuation import DEFAULT_WARN_THRESHOLD, continue_to_next_week
from eduschedule.engine.curriculum import pair_key
from eduschedule.engine.progress import calculate_progress, learned_periods
from eduschedule.engine.temporal import parse_local, session_from_period, week_range
from eduschedule.errors import DataValidationError, NotFoundError, ScheduleConflictError
from eduschedule.schemas import (
    AppState,
    ClassEntity,
    CompletedPair,
    ConflictResult,
    ContinuationResult,
    Dashboard,
    Major,
    PairProgress,
    Progress,
    Session,
    SessionDraft,
    SessionStatus,
    SessionUpdate,
    SessionView,
    Student,
    Subject,
    SubjectProgressRow,
    Teacher,
    TeacherWorkload,
    generate_id,
)
from eduschedule.services import reports
from eduschedule.services.storage import JsonFileStorage, initial_state, parse_state


logger = logging.getLogger(__name__)

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "teachers": Teacher,
    "subjects": Subject,
    "classes": ClassEntity,
    "students": Student,
    "majors": Major,
}

# Fields whose change moves a session and must be re-validated.
PLACEMENT_FIELDS = {"kind", "teacher_id", "subject_id", "class_id", "room_id", "date", "start_period", "period_count"}

UPCOMING_EXAMS_LIMIT = 5


@dataclass
class State:
    data: AppState


class ScheduleService:
    """Owns the application state and every write to it.

    The scheduling engine only ever sees snapshots handed to it by this
    class; persisting the result is this class's side effect.
    """

    def __init__(
        self,
        storage: Optional[JsonFileStorage] = None,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.storage = storage or JsonFileStorage()
        self.warn_threshold = warn_threshold
        self.clock = clock or date.today
        self.state = State(data=self.storage.load())

    # --- State plumbing ---
    def _commit(self, data: AppState) -> None:
        # save first so a failed write leaves the in-memory state untouched
        self.storage.save(data)
        self.state.data = data

    def _replace(self, **changes: Any) -> None:
        self._commit(self.state.data.model_copy(update=changes))

    def today(self) -> date:
        return self.clock()

    def subject_map(self) -> Dict[str, Subject]:
        return {s.id: s for s in self.state.data.subjects}

    def get_session(self, session_id: str) -> Session:
        for s in self.state.data.schedules:
            if s.id == session_id:
                return s
        raise NotFoundError("Session", session_id)

    def get_class(self, class_id: str) -> ClassEntity:
        for c in self.state.data.classes:
            if c.id == class_id:
                return c
        raise NotFoundError("Class", class_id)

    def get_subject(self, subject_id: str) -> Subject:
        subject = self.subject_map().get(subject_id)
        if subject is None:
            raise NotFoundError("Subject", subject_id)
        return subject

    # --- Backup / restore ---
    def snapshot(self) -> AppState:
        return self.state.data

    def restore(self, payload: Any) -> AppState:
        try:
            data = parse_state(payload)
        except ValueError as exc:
            raise DataValidationError(str(exc)) from exc
        self._commit(data)
        logger.info("Restored state with %d sessions", len(data.schedules))
        return data

    def reset(self) -> AppState:
        data = initial_state()
        self._commit(data)
        logger.info("State reset to seed data")
        return data

    # --- Reference data CRUD ---
    def _collection(self, name: str) -> List[Any]:
        if name not in COLLECTIONS:
            raise NotFoundError("Collection", name)
        return getattr(self.state.data, name)

    def list_entities(self, name: str) -> List[Any]:
        return list(self._collection(name))

    def create_entity(self, name: str, payload: Dict[str, Any]) -> Any:
        items = self._collection(name)
        try:
            entity = COLLECTIONS[name].model_validate(payload)
        except ValidationError as exc:
            raise DataValidationError(f"Invalid {name} entry: {exc.error_count()} invalid fields") from exc
        if not entity.id:
            entity = entity.model_copy(update={"id": generate_id()})
        elif any(item.id == entity.id for item in items):
            raise DataValidationError(f"Duplicate id {entity.id} in {name}")
        self._replace(**{name: items + [entity]})
        return entity

    def update_entity(self, name: str, entity_id: str, changes: Dict[str, Any]) -> Any:
        items = self._collection(name)
        current = next((item for item in items if item.id == entity_id), None)
        if current is None:
            raise NotFoundError(name, entity_id)
        model = COLLECTIONS[name]
        # accept both camelCase aliases and field names; merge by field name
        by_alias = {(field.alias or to_camel(field_name)): field_name for field_name, field in model.model_fields.items()}
        merged = current.model_dump()
        for key, value in changes.items():
            merged[by_alias.get(key, key)] = value
        try:
            updated = model.model_validate(merged)
        except ValidationError as exc:
            raise DataValidationError(f"Invalid {name} entry: {exc.error_count()} invalid fields") from exc
        updated = updated.model_copy(update={"id": entity_id})
        self._replace(**{name: [updated if item.id == entity_id else item for item in items]})
        return updated

    def delete_entity(self, name: str, entity_id: str) -> None:
        items = self._collection(name)
        if not any(item.id == entity_id for item in items):
            raise NotFoundError(name, entity_id)
        # no cascade: sessions keep their references and render as deleted
        self._replace(**{name: [item for item in items if item.id != entity_id]})

    # --- Session placement ---
    def check(self, draft: SessionDraft, exclude_id: Optional[str] = None) -> ConflictResult:
        return check_conflict(draft, self.state.data.schedules, self.subject_map(), exclude_id)

    def _require_fields(self, draft: SessionDraft) -> None:
        missing = [
            label for label, value in (
                ("teacher", draft.teacher_id),
                ("subject", draft.subject_id),
                ("class", draft.class_id),
                ("room", draft.room_id),
            ) if not value
        ]
        if missing:
            raise DataValidationError(f"Please fill in all required fields: {', '.join(missing)}")

    def _check_remaining(self, draft: SessionDraft, exclude_id: Optional[str] = None) -> None:
        if draft.kind != "class":
            return
        subject = self.subject_map().get(draft.subject_id)
        if subject is None:
            return
        others = [s for s in self.state.data.schedules if s.id != exclude_id]
        remaining = max(0, subject.total_periods - learned_periods(draft.subject_id, draft.class_id, others))
        if draft.period_count > remaining:
            raise DataValidationError(f"Subject {subject.name} only has {remaining} periods left")

    def _check_placement(self, draft: SessionDraft, exclude_id: Optional[str] = None) -> None:
        conflict = self.check(draft, exclude_id)
        if conflict.has_conflict:
            logger.info("Rejected session for class %s on %s: %s", draft.class_id, draft.date, conflict.message)
            raise ScheduleConflictError(conflict.message)

    def _insert(self, draft: SessionDraft) -> Session:
        session = Session(
            **draft.model_dump(exclude={"session"}),
            session=draft.session or session_from_period(draft.start_period),
            id=generate_id(),
            status=SessionStatus.PENDING,
        )
        self._replace(schedules=self.state.data.schedules + [session])
        return session

    def create_session(self, draft: SessionDraft) -> Session:
        self._require_fields(draft)
        self._check_remaining(draft)
        self._check_placement(draft)
        return self._insert(draft)

    def copy_session(self, session_id: str, target_date: date, start_period: int) -> Session:
        source = self.get_session(session_id)
        if parse_local(source.date) == parse_local(target_date) and source.start_period == start_period:
            raise DataValidationError("A session cannot be copied onto its own slot")
        draft = SessionDraft(
            **source.model_dump(exclude={"id", "status", "date", "start_period", "session"}),
            date=target_date,
            start_period=start_period,
            session=session_from_period(start_period),
        )
        self._check_placement(draft)
        return self._insert(draft)

    def update_session(self, session_id: str, update: SessionUpdate) -> Session:
        current = self.get_session(session_id)
        changes = update.model_dump(exclude_unset=True)
        try:
            merged = Session.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            raise DataValidationError(f"Invalid session update: {exc.error_count()} invalid fields") from exc

        reactivated = current.status == SessionStatus.OFF and merged.status != SessionStatus.OFF
        if merged.status != SessionStatus.OFF and (reactivated or PLACEMENT_FIELDS & changes.keys()):
            self._require_fields(merged)
            self._check_remaining(merged, exclude_id=session_id)
            self._check_placement(merged, exclude_id=session_id)

        self._replace(schedules=[merged if s.id == session_id else s for s in self.state.data.schedules])
        return merged

    def delete_session(self, session_id: str) -> None:
        self.get_session(session_id)
        self._replace(schedules=[s for s in self.state.data.schedules if s.id != session_id])

    def continue_week(self, week_start: date, class_id: str) -> ContinuationResult:
        result = continue_to_next_week(
            week_start,
            class_id,
            self.state.data.schedules,
            self.subject_map(),
            warn_threshold=self.warn_threshold,
        )
        if result.added:
            self._replace(schedules=self.state.data.schedules + result.added)
        logger.info(
            "Continued week of %s for class %s: %d added, %d warnings",
            week_start, class_id, result.added_count, len(result.warnings),
        )
        return result

    # --- Derived views ---
    def progress(self, subject_id: str, class_id: str) -> Progress:
        subject = self.get_subject(subject_id)
        return calculate_progress(subject_id, class_id, subject.total_periods, self.state.data.schedules)

    def list_sessions(self, class_id: Optional[str] = None, week_start: Optional[date] = None) -> List[SessionView]:
        sessions = self.state.data.schedules
        selected = [s for s in sessions if class_id is None or s.class_id == class_id]
        if week_start is not None:
            first, last = week_range(week_start)
            selected = sorted(
                (s for s in selected if first <= parse_local(s.date) <= last),
                key=lambda s: (parse_local(s.date), s.start_period),
            )
        lookups = reports.Lookups.from_state(self.state.data)
        today = self.today()
        return [reports.session_view(s, sessions, lookups, today) for s in selected]

    def class_overview(self, class_id: str) -> List[SubjectProgressRow]:
        return reports.class_overview(self.state.data, self.get_class(class_id), self.today())

    def toggle_manual_complete(self, subject_id: str, class_id: str) -> bool:
        key = pair_key(subject_id, class_id)
        marked = list(self.state.data.manual_completed)
        if key in marked:
            marked.remove(key)
        else:
            marked.append(key)
        self._replace(manual_completed=marked)
        return key in marked

    def teacher_workload(self) -> List[TeacherWorkload]:
        return reports.teacher_workload(self.state.data)

    def subjects_in_progress(self) -> List[PairProgress]:
        return reports.subjects_in_progress(self.state.data)

    def completed_pairs(self) -> List[CompletedPair]:
        return reports.completed_pairs(self.state.data)

    def mark_paid(self, subject_id: str, class_id: str) -> None:
        key = pair_key(subject_id, class_id)
        if key not in self.state.data.paid:
            self._replace(paid=self.state.data.paid + [key])

    def missed_sessions(self) -> List[Session]:
        return reports.missed_sessions(self.state.data)

    def dashboard(self) -> Dashboard:
        data = self.state.data
        today = self.today()
        lookups = reports.Lookups.from_state(data)
        todays = sorted(
            (s for s in data.schedules if s.kind == "class" and parse_local(s.date) == today),
            key=lambda s: s.start_period,
        )
        exams = sorted(
            (s for s in data.schedules if s.kind == "exam" and parse_local(s.date) >= today),
            key=lambda s: parse_local(s.date),
        )[:UPCOMING_EXAMS_LIMIT]
        return Dashboard(
            today=today,
            counts={
                "subjects": len(data.subjects),
                "teachers": len(data.teachers),
                "classes": len(data.classes),
                "sessions": len(data.schedules),
            },
            today_sessions=[reports.session_view(s, data.schedules, lookups, today) for s in todays],
            upcoming_exams=[reports.session_view(s, data.schedules, lookups, today) for s in exams],
        )
