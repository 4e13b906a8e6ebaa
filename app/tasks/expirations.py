import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.metrics import BOOKING_TRANSITIONS
from app.db.models import Booking, BookingStatus
from app.db.session import SessionLocal
from app.tasks.celery_app import celery_app

logger = logging.getLogger("app.tasks.expirations")


def expire_stale_pending_bookings(db: Session, now: datetime | None = None) -> int:
    """Cancel PENDING bookings that were never confirmed before they started."""
    current_time = now or datetime.now(UTC)
    expire_before = current_time - timedelta(minutes=settings.pending_booking_expire_after_start_minutes)

    result = db.execute(
        update(Booking)
        .where(
            Booking.status == BookingStatus.PENDING.value,
            Booking.scheduled_at <= expire_before,
        )
        .values(
            status=BookingStatus.CANCELLED.value,
            cancelled_at=current_time,
            updated_at=current_time,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()

    expired = result.rowcount or 0
    if expired:
        BOOKING_TRANSITIONS.labels(transition="expired").inc(expired)
        logger.info("pending_bookings_expired count=%s before=%s", expired, expire_before.isoformat())
    return expired


@celery_app.task(name="bookings.expire_stale_pending")
def expire_stale_pending_bookings_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        expired_count = expire_stale_pending_bookings(db=db)
        return {"expired": expired_count}
    finally:
        db.close()
