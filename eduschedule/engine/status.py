from __future__ import annotations
from datetime import date
from typing import Optional

from eduschedule.engine.temporal import DateLike, parse_local
from eduschedule.schemas import SessionStatus


MANUAL_STATUSES = (SessionStatus.OFF, SessionStatus.MAKEUP)


def resolve_status(
    session_date: DateLike,
    start_period: int,
    stored_status: SessionStatus,
    today: Optional[date] = None,
) -> SessionStatus:
    """Display status of a session, derived from its date on every read.

    Off and Makeup are manual overrides and are returned unchanged. The
    comparison is by calendar day only, so ``start_period`` does not move a
    session between Pending/Ongoing/Completed within the day.
    """
    if stored_status in MANUAL_STATUSES:
        return stored_status

    current = today or date.today()
    day = parse_local(session_date)
    if day < current:
        return SessionStatus.COMPLETED
    if day > current:
        return SessionStatus.PENDING
    return SessionStatus.ONGOING
