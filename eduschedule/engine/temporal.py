from __future__ import annotations
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Tuple, Union


MORNING_LAST_PERIOD = 5
AFTERNOON_LAST_PERIOD = 10

DateLike = Union[date, datetime, str]


class SessionPart(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"


def parse_local(value: DateLike) -> date:
    """Return the calendar date of ``value`` without any timezone shift.

    Strings must be ``YYYY-MM-DD``; anything after the day (a time part) is
    ignored so that ``"2024-05-01T23:30:00Z"`` stays on the 1st.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()[:10]
    try:
        y, m, d = (int(part) for part in text.split("-"))
        return date(y, m, d)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def session_from_period(start_period: int) -> SessionPart:
    if start_period <= MORNING_LAST_PERIOD:
        return SessionPart.MORNING
    if start_period <= AFTERNOON_LAST_PERIOD:
        return SessionPart.AFTERNOON
    return SessionPart.EVENING


def period_end(start_period: int, period_count: int) -> int:
    # half-open: a session occupies [start, start + count)
    return start_period + period_count


def week_range(week_start: DateLike) -> Tuple[date, date]:
    start = parse_local(week_start)
    return start, start + timedelta(days=6)


def add_days(day: DateLike, days: int) -> date:
    return parse_local(day) + timedelta(days=days)
