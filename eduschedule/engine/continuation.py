from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, List, Optional

from eduschedule.engine.conflicts import SubjectLookup, as_subject_map, check_conflict
from eduschedule.engine.curriculum import pair_key
from eduschedule.engine.progress import calculate_progress
from eduschedule.engine.temporal import DateLike, add_days, parse_local, week_range
from eduschedule.schemas import ContinuationResult, Session, SessionStatus, generate_id


logger = logging.getLogger(__name__)

DEFAULT_WARN_THRESHOLD = 4


def week_class_sessions(week_start: DateLike, class_id: str, sessions: Iterable[Session]) -> List[Session]:
    first, last = week_range(week_start)
    selected = [
        s for s in sessions
        if s.class_id == class_id and s.kind == "class" and first <= parse_local(s.date) <= last
    ]
    return sorted(selected, key=lambda s: (parse_local(s.date), s.start_period))


def continue_to_next_week(
    week_start: DateLike,
    class_id: str,
    sessions: Iterable[Session],
    subjects: SubjectLookup,
    warn_threshold: int = DEFAULT_WARN_THRESHOLD,
    id_factory: Optional[Callable[[], str]] = None,
) -> ContinuationResult:
    """Copy a week's unfinished class sessions into the following week.

    The input list is not modified; accepted copies are returned in
    ``added`` for the caller to persist. Each accepted copy takes part in
    the conflict and duplicate checks of the copies after it. A copy that
    conflicts is skipped without stopping the batch.
    """
    make_id = id_factory or generate_id
    subject_map = as_subject_map(subjects)
    snapshot: List[Session] = list(sessions)
    # progress is read from the snapshot and adjusted by added_periods;
    # conflict and duplicate checks see the copies accepted so far
    working: List[Session] = list(snapshot)
    result = ContinuationResult()
    added_periods: Dict[str, int] = {}

    for item in week_class_sessions(week_start, class_id, snapshot):
        subject = subject_map.get(item.subject_id)
        if subject is None:
            continue

        key = pair_key(item.subject_id, item.class_id)
        progress = calculate_progress(item.subject_id, item.class_id, subject.total_periods, snapshot)
        current_remaining = progress.remaining - added_periods.get(key, 0)

        if current_remaining > 0:
            next_date = add_days(item.date, 7)
            exists = any(
                s.class_id == item.class_id and parse_local(s.date) == next_date and s.start_period == item.start_period
                for s in working
            )
            if not exists:
                periods_to_teach = min(item.period_count, current_remaining)
                clone = item.model_copy(update={
                    "id": make_id(),
                    "date": next_date,
                    "period_count": periods_to_teach,
                    "status": SessionStatus.PENDING,
                })
                conflict = check_conflict(clone, working, subject_map)
                if conflict.has_conflict:
                    logger.info("Skipped copy of %s to %s: %s", item.id, next_date, conflict.message)
                else:
                    working.append(clone)
                    result.added.append(clone)
                    result.added_count += 1
                    added_periods[key] = added_periods.get(key, 0) + periods_to_teach

        final_remaining = progress.remaining - added_periods.get(key, 0)
        if 0 < final_remaining <= warn_threshold:
            msg = f"Subject {subject.name} is nearly finished ({final_remaining} periods left)"
            if msg not in result.warnings:
                result.warnings.append(msg)

    return result
