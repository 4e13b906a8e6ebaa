import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.metrics import BOOKING_CONFLICTS
from app.db.models import ACTIVE_BOOKING_STATUSES, Booking
from app.services.intervals import TimeInterval, has_conflict

logger = logging.getLogger("app.bookings.conflicts")

PROFESSIONAL_BUSY_DETAIL = "Professional is not available at the requested time"
USER_BUSY_DETAIL = "You already have a booking at this time"


def _intervals(db: Session, query) -> list[TimeInterval]:
    return [TimeInterval(start, end) for start, end in db.execute(query).all()]


def professional_booked_intervals(
    db: Session,
    professional_id: int,
    window: TimeInterval,
    exclude_booking_id: int | None = None,
) -> list[TimeInterval]:
    query = select(Booking.scheduled_at, Booking.ends_at).where(
        Booking.professional_id == professional_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.scheduled_at < window.end,
        Booking.ends_at > window.start,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    return _intervals(db, query)


def user_booked_intervals(
    db: Session,
    user_id: int,
    window: TimeInterval,
    exclude_booking_id: int | None = None,
) -> list[TimeInterval]:
    # no service runs longer than the lookback, so older bookings cannot overlap
    search_start = window.start - timedelta(hours=settings.user_conflict_lookback_hours)
    query = select(Booking.scheduled_at, Booking.ends_at).where(
        Booking.user_id == user_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.scheduled_at >= search_start,
        Booking.scheduled_at < window.end,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    return _intervals(db, query)


def is_professional_free(
    db: Session,
    professional_id: int,
    candidate: TimeInterval,
    exclude_booking_id: int | None = None,
) -> bool:
    booked = professional_booked_intervals(db, professional_id, candidate, exclude_booking_id)
    return not has_conflict(booked, candidate)


def ensure_professional_free(
    db: Session,
    professional_id: int,
    candidate: TimeInterval,
    exclude_booking_id: int | None = None,
) -> None:
    if is_professional_free(db, professional_id, candidate, exclude_booking_id):
        return
    BOOKING_CONFLICTS.labels(reason="professional").inc()
    logger.info(
        "booking_conflict reason=professional professional_id=%s interval=%s",
        professional_id,
        candidate,
    )
    raise ConflictError(PROFESSIONAL_BUSY_DETAIL)


def ensure_user_free(
    db: Session,
    user_id: int,
    candidate: TimeInterval,
    exclude_booking_id: int | None = None,
) -> None:
    booked = user_booked_intervals(db, user_id, candidate, exclude_booking_id)
    if not has_conflict(booked, candidate):
        return
    BOOKING_CONFLICTS.labels(reason="user").inc()
    logger.info("booking_conflict reason=user user_id=%s interval=%s", user_id, candidate)
    raise ConflictError(USER_BUSY_DETAIL)
