import re
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import BookingValidationError
from app.db.models import ACTIVE_BOOKING_STATUSES, Booking, Customer
from app.schemas.availability import AvailabilityResponse, BranchSummary, ServiceSummary, TimeSlotResponse
from app.services.assignment_service import candidate_professional_ids
from app.services.catalog_service import get_customer_branch, get_professional_at_branch, get_service
from app.services.intervals import TimeInterval, day_bounds, has_conflict
from app.services.schedule_service import (
    DaySchedule,
    format_clock,
    schedule_for_branch,
    schedules_for_professionals,
    weekday_of,
)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class _WorkingDay:
    hours: TimeInterval
    pause: TimeInterval | None
    booked: list[TimeInterval]

    def accepts(self, slot: TimeInterval) -> bool:
        if not self.hours.contains(slot):
            return False
        if self.pause is not None and self.pause.overlaps(slot):
            return False
        return not has_conflict(self.booked, slot)


def parse_day(value: str) -> date:
    if not DATE_PATTERN.match(value):
        raise BookingValidationError("Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BookingValidationError("Invalid date provided") from None


def _booked_by_professional(
    db: Session, professional_ids: list[int], window: TimeInterval
) -> dict[int, list[TimeInterval]]:
    # a professional's time is exclusive across branches, so every branch counts
    rows = db.execute(
        select(Booking.professional_id, Booking.scheduled_at, Booking.ends_at).where(
            Booking.professional_id.in_(professional_ids),
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.scheduled_at < window.end,
            Booking.ends_at > window.start,
        )
    ).all()
    booked: dict[int, list[TimeInterval]] = {professional_id: [] for professional_id in professional_ids}
    for professional_id, start, end in rows:
        booked[professional_id].append(TimeInterval(start, end))
    return booked


def _working_days(
    db: Session, day: date, professional_ids: list[int], weekday: int
) -> dict[int, _WorkingDay | None]:
    if not professional_ids:
        return {}
    schedules: dict[int, DaySchedule | None] = schedules_for_professionals(db, professional_ids, weekday)
    booked = _booked_by_professional(db, professional_ids, day_bounds(day))
    working: dict[int, _WorkingDay | None] = {}
    for professional_id in professional_ids:
        schedule = schedules[professional_id]
        if schedule is None:
            working[professional_id] = None
            continue
        working[professional_id] = _WorkingDay(
            hours=schedule.working_interval(day),
            pause=schedule.break_interval(day),
            booked=booked[professional_id],
        )
    return working


def compute_slots(
    db: Session,
    branch_id: int,
    day: date,
    duration_minutes: int,
    professional_id: int | None = None,
) -> list[TimeSlotResponse]:
    """Bookable start times of a branch for one day."""
    weekday = weekday_of(day)
    branch_schedule = schedule_for_branch(db, branch_id, weekday)
    if branch_schedule is None:
        return []

    if professional_id is not None:
        candidates = [get_professional_at_branch(db, professional_id, branch_id).id]
    else:
        candidates = candidate_professional_ids(db, branch_id)

    working = _working_days(db, day, candidates, weekday)
    opening = branch_schedule.working_interval(day)
    step = timedelta(minutes=settings.slot_interval_minutes)

    slots: list[TimeSlotResponse] = []
    slot_start = opening.start
    while slot_start < opening.end:
        slot = TimeInterval.from_duration(slot_start, duration_minutes)
        if slot.end <= opening.end:
            free_professional_id = next(
                (
                    candidate
                    for candidate in candidates
                    if working[candidate] is not None and working[candidate].accepts(slot)
                ),
                None,
            )
            slots.append(
                TimeSlotResponse(
                    time=format_clock(slot.start),
                    available=free_professional_id is not None,
                    professional_id=professional_id if professional_id is not None else free_professional_id,
                )
            )
        slot_start += step
    return slots


def check_availability(
    db: Session,
    customer: Customer,
    branch_id: int,
    service_id: int,
    date_value: str,
    professional_id: int | None = None,
) -> AvailabilityResponse:
    day = parse_day(date_value)

    branch = get_customer_branch(db, branch_id, customer.id)
    service = get_service(db, service_id)
    if service.customer_id != branch.customer_id:
        raise BookingValidationError("Branch and service do not belong to the same customer")

    slots = compute_slots(
        db,
        branch_id=branch.id,
        day=day,
        duration_minutes=service.duration_minutes,
        professional_id=professional_id,
    )
    return AvailabilityResponse(
        date=day.isoformat(),
        branch=BranchSummary(id=branch.id, name=branch.name),
        service=ServiceSummary(id=service.id, name=service.name, duration=service.duration_minutes),
        available_slots=slots,
    )
