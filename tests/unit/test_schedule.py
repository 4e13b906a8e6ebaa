from datetime import UTC, date, datetime, time

import pytest

from app.db.models import BranchSchedule, ProfessionalSchedule
from app.services.schedule_service import (
    DaySchedule,
    format_clock,
    parse_clock,
    schedule_for_branch,
    schedule_for_professional,
    schedules_for_professionals,
    upsert_professional_schedule,
    weekday_of,
)
from tests.factories import seed_salon


def test_weekday_numbering_starts_on_sunday():
    assert weekday_of(date(2030, 5, 5)) == 0  # Sunday
    assert weekday_of(date(2030, 5, 6)) == 1
    assert weekday_of(date(2030, 5, 11)) == 6


def test_clock_parsing_round_trip():
    assert parse_clock("09:05") == time(9, 5)
    assert format_clock(time(17, 15)) == "17:15"
    with pytest.raises(ValueError):
        parse_clock("25:00")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"opens_at": time(18), "closes_at": time(9)},
        {"opens_at": time(9), "closes_at": time(9)},
        {"opens_at": time(9), "closes_at": time(18), "break_starts_at": time(12)},
        {"opens_at": time(9), "closes_at": time(18), "break_starts_at": time(13), "break_ends_at": time(12)},
        {"opens_at": time(9), "closes_at": time(18), "break_starts_at": time(8), "break_ends_at": time(10)},
        {"opens_at": time(9), "closes_at": time(18), "break_starts_at": time(17), "break_ends_at": time(19)},
    ],
)
def test_day_schedule_rejects_invalid_hours(kwargs):
    with pytest.raises(ValueError):
        DaySchedule(**kwargs)


def test_day_schedule_materialises_utc_intervals():
    schedule = DaySchedule(
        opens_at=time(9),
        closes_at=time(18),
        break_starts_at=time(12),
        break_ends_at=time(13),
    )
    day = date(2030, 5, 6)

    working = schedule.working_interval(day)
    pause = schedule.break_interval(day)

    assert working.start == datetime(2030, 5, 6, 9, tzinfo=UTC)
    assert working.end == datetime(2030, 5, 6, 18, tzinfo=UTC)
    assert pause is not None
    assert pause.minutes == 60
    assert DaySchedule(opens_at=time(9), closes_at=time(18)).break_interval(day) is None


def test_missing_professional_row_means_not_working(db_session):
    salon = seed_salon(db_session, professional_count=1)
    professional = salon.professionals[0]
    db_session.query(ProfessionalSchedule).filter(ProfessionalSchedule.day_of_week == 2).delete()
    db_session.commit()

    assert schedule_for_professional(db_session, professional.id, 2) is None
    # branch hours are never used as a fallback
    assert schedule_for_branch(db_session, salon.branch.id, 2) is not None


def test_closed_rows_resolve_to_none(db_session):
    salon = seed_salon(db_session, professional_count=2)
    first, second = salon.professionals
    upsert_professional_schedule(db_session, first.id, 3, "09:00", "18:00", is_closed=True)
    db_session.query(BranchSchedule).filter(BranchSchedule.day_of_week == 3).update({"is_closed": True})
    db_session.commit()

    assert schedule_for_branch(db_session, salon.branch.id, 3) is None
    schedules = schedules_for_professionals(db_session, [first.id, second.id], 3)
    assert schedules[first.id] is None
    assert schedules[second.id] == DaySchedule(opens_at=time(9), closes_at=time(18))


def test_upsert_replaces_existing_row(db_session):
    salon = seed_salon(db_session, professional_count=1)
    professional = salon.professionals[0]

    upsert_professional_schedule(
        db_session,
        professional.id,
        1,
        "10:00",
        "16:00",
        is_closed=False,
        break_start_time="12:00",
        break_end_time="12:30",
    )

    rows = db_session.query(ProfessionalSchedule).filter_by(professional_id=professional.id, day_of_week=1).all()
    assert len(rows) == 1
    schedule = schedule_for_professional(db_session, professional.id, 1)
    assert schedule == DaySchedule(
        opens_at=time(10),
        closes_at=time(16),
        break_starts_at=time(12),
        break_ends_at=time(12, 30),
    )
