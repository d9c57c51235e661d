from datetime import date

import pytest

from eduschedule.engine.status import resolve_status
from eduschedule.schemas import SessionStatus


TODAY = date(2024, 1, 2)


def test_past_session_is_completed():
    assert resolve_status("2024-01-01", 1, SessionStatus.PENDING, today=TODAY) == SessionStatus.COMPLETED


def test_future_session_is_pending():
    assert resolve_status(date(2024, 1, 3), 1, SessionStatus.PENDING, today=TODAY) == SessionStatus.PENDING


@pytest.mark.parametrize("start_period", [1, 5, 10])
def test_today_is_ongoing_whatever_the_period(start_period):
    assert resolve_status("2024-01-02", start_period, SessionStatus.PENDING, today=TODAY) == SessionStatus.ONGOING


@pytest.mark.parametrize("stored", [SessionStatus.OFF, SessionStatus.MAKEUP])
@pytest.mark.parametrize("day", ["2023-12-01", "2024-01-02", "2024-02-01"])
def test_manual_statuses_are_sticky(stored, day):
    assert resolve_status(day, 1, stored, today=TODAY) == stored


def test_stored_completed_is_recomputed_from_the_date():
    assert resolve_status("2024-01-05", 1, SessionStatus.COMPLETED, today=TODAY) == SessionStatus.PENDING
