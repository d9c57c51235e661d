from eduschedule.engine.progress import calculate_progress, sequence_info
from eduschedule.schemas import SessionStatus

from factories import make_session


def test_full_curriculum_is_complete():
    sessions = [
        make_session("a", day="2024-05-01", count=10),
        make_session("b", day="2024-05-02", count=10),
        make_session("c", day="2024-05-03", count=10),
    ]
    progress = calculate_progress("sub1", "c1", 30, sessions)
    assert (progress.learned, progress.total, progress.percentage, progress.remaining) == (30, 30, 100, 0)
    assert progress.is_complete


def test_progress_is_clamped_when_overshooting():
    sessions = [make_session("a", count=25), make_session("b", day="2024-05-02", count=15)]
    progress = calculate_progress("sub1", "c1", 30, sessions)
    assert progress.learned == 40
    assert progress.percentage == 100
    assert progress.remaining == 0


def test_off_sessions_and_other_pairs_are_not_counted():
    sessions = [
        make_session("a", count=3),
        make_session("b", day="2024-05-02", count=3, status=SessionStatus.OFF),
        make_session("c", day="2024-05-03", count=3, klass="c2"),
        make_session("d", day="2024-05-04", count=3, subject="sub2"),
        make_session("e", day="2024-05-05", count=2, kind="exam"),
    ]
    progress = calculate_progress("sub1", "c1", 30, sessions)
    assert progress.learned == 5
    assert progress.percentage == 17
    assert progress.remaining == 25


def test_pair_without_sessions_is_never_complete():
    progress = calculate_progress("sub1", "c1", 0, [])
    assert progress.learned == 0
    assert progress.percentage == 0
    assert not progress.is_complete


def test_sequence_orders_by_date_then_start_period():
    sessions = [
        make_session("s3", day="2024-05-08", start=1, count=4),
        make_session("s2", day="2024-05-01", start=6, count=2),
        make_session("s1", day="2024-05-01", start=1, count=3),
    ]
    by_id = {s.id: s for s in sessions}

    first = sequence_info(by_id["s1"], sessions, 9)
    assert (first.cumulative, first.is_first, first.is_last) == (3, True, False)

    middle = sequence_info(by_id["s2"], sessions, 9)
    assert (middle.cumulative, middle.is_first, middle.is_last) == (5, False, False)

    last = sequence_info(by_id["s3"], sessions, 9)
    assert (last.cumulative, last.is_first, last.is_last) == (9, False, True)


def test_sequence_skips_exams_and_off_sessions():
    sessions = [
        make_session("exam", day="2024-04-20", kind="exam", count=2),
        make_session("off", day="2024-04-25", count=3, status=SessionStatus.OFF),
        make_session("s1", day="2024-05-01", count=3),
    ]
    info = sequence_info(sessions[2], sessions, 30)
    assert info.cumulative == 3
    assert info.is_first

    exam_info = sequence_info(sessions[0], sessions, 30)
    assert exam_info.cumulative == 0
    assert not exam_info.is_first and not exam_info.is_last


def test_sequence_display_value_is_clamped_to_total():
    sessions = [
        make_session("s1", day="2024-05-01", count=5),
        make_session("s2", day="2024-05-02", count=4),
    ]
    info = sequence_info(sessions[1], sessions, 8)
    assert info.cumulative == 9
    assert info.display_cumulative == 8
    assert info.is_last


def test_percentage_divides_before_scaling():
    # 29 / 200 * 100 is just below 14.5 in floating point
    progress = calculate_progress("sub1", "c1", 200, [make_session("a", count=29)])
    assert progress.percentage == 14
    assert calculate_progress("sub1", "c1", 8, [make_session("a", count=1)]).percentage == 13
