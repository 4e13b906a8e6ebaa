from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import BranchSchedule, ProfessionalSchedule
from app.services.intervals import TimeInterval, at_time

TIME_FORMAT = "%H:%M"


def parse_clock(value: str) -> time:
    return datetime.strptime(value, TIME_FORMAT).time()


def format_clock(value: time | datetime) -> str:
    return value.strftime(TIME_FORMAT)


def weekday_of(day: date) -> int:
    """Weekday in schedule numbering: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class DaySchedule:
    """Working hours of a branch or professional for one weekday."""

    opens_at: time
    closes_at: time
    break_starts_at: time | None = None
    break_ends_at: time | None = None

    def __post_init__(self) -> None:
        if self.opens_at >= self.closes_at:
            raise ValueError("Schedule start time must be before end time")
        if (self.break_starts_at is None) != (self.break_ends_at is None):
            raise ValueError("Break start and end must be provided together")
        if self.break_starts_at is not None:
            if self.break_starts_at >= self.break_ends_at:
                raise ValueError("Break start time must be before break end time")
            if self.break_starts_at < self.opens_at or self.break_ends_at > self.closes_at:
                raise ValueError("Break must lie within working hours")

    @classmethod
    def from_row(cls, row: BranchSchedule | ProfessionalSchedule) -> "DaySchedule":
        break_start = getattr(row, "break_start_time", None)
        break_end = getattr(row, "break_end_time", None)
        return cls(
            opens_at=parse_clock(row.start_time),
            closes_at=parse_clock(row.end_time),
            break_starts_at=parse_clock(break_start) if break_start else None,
            break_ends_at=parse_clock(break_end) if break_end else None,
        )

    def working_interval(self, day: date) -> TimeInterval:
        return TimeInterval(at_time(day, self.opens_at), at_time(day, self.closes_at))

    def break_interval(self, day: date) -> TimeInterval | None:
        if self.break_starts_at is None:
            return None
        return TimeInterval(at_time(day, self.break_starts_at), at_time(day, self.break_ends_at))


def _to_day_schedule(row: BranchSchedule | ProfessionalSchedule | None) -> DaySchedule | None:
    # no row means not working that day
    if row is None or row.is_closed:
        return None
    return DaySchedule.from_row(row)


def schedule_for_branch(db: Session, branch_id: int, weekday: int) -> DaySchedule | None:
    row = db.scalar(
        select(BranchSchedule).where(
            BranchSchedule.branch_id == branch_id,
            BranchSchedule.day_of_week == weekday,
        )
    )
    return _to_day_schedule(row)


def schedule_for_professional(db: Session, professional_id: int, weekday: int) -> DaySchedule | None:
    row = db.scalar(
        select(ProfessionalSchedule).where(
            ProfessionalSchedule.professional_id == professional_id,
            ProfessionalSchedule.day_of_week == weekday,
        )
    )
    return _to_day_schedule(row)


def schedules_for_professionals(
    db: Session, professional_ids: list[int], weekday: int
) -> dict[int, DaySchedule | None]:
    rows = db.scalars(
        select(ProfessionalSchedule).where(
            ProfessionalSchedule.professional_id.in_(professional_ids),
            ProfessionalSchedule.day_of_week == weekday,
        )
    ).all()
    by_professional = {row.professional_id: row for row in rows}
    return {
        professional_id: _to_day_schedule(by_professional.get(professional_id))
        for professional_id in professional_ids
    }


def list_branch_schedule(db: Session, branch_id: int) -> list[BranchSchedule]:
    return list(
        db.scalars(
            select(BranchSchedule).where(BranchSchedule.branch_id == branch_id).order_by(BranchSchedule.day_of_week)
        ).all()
    )


def list_professional_schedule(db: Session, professional_id: int) -> list[ProfessionalSchedule]:
    return list(
        db.scalars(
            select(ProfessionalSchedule)
            .where(ProfessionalSchedule.professional_id == professional_id)
            .order_by(ProfessionalSchedule.day_of_week)
        ).all()
    )


def upsert_branch_schedule(
    db: Session,
    branch_id: int,
    weekday: int,
    start_time: str,
    end_time: str,
    is_closed: bool,
) -> BranchSchedule:
    row = db.scalar(
        select(BranchSchedule).where(
            BranchSchedule.branch_id == branch_id,
            BranchSchedule.day_of_week == weekday,
        )
    )
    if row is None:
        row = BranchSchedule(branch_id=branch_id, day_of_week=weekday)
        db.add(row)
    row.start_time = start_time
    row.end_time = end_time
    row.is_closed = is_closed
    db.commit()
    db.refresh(row)
    return row


def upsert_professional_schedule(
    db: Session,
    professional_id: int,
    weekday: int,
    start_time: str,
    end_time: str,
    is_closed: bool,
    break_start_time: str | None = None,
    break_end_time: str | None = None,
) -> ProfessionalSchedule:
    row = db.scalar(
        select(ProfessionalSchedule).where(
            ProfessionalSchedule.professional_id == professional_id,
            ProfessionalSchedule.day_of_week == weekday,
        )
    )
    if row is None:
        row = ProfessionalSchedule(professional_id=professional_id, day_of_week=weekday)
        db.add(row)
    row.start_time = start_time
    row.end_time = end_time
    row.is_closed = is_closed
    row.break_start_time = break_start_time
    row.break_end_time = break_end_time
    db.commit()
    db.refresh(row)
    return row
