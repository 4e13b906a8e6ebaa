import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.core.metrics import BOOKING_CONFLICTS
from app.services.catalog_service import list_branch_professionals
from app.services.conflict_service import is_professional_free
from app.services.intervals import TimeInterval

logger = logging.getLogger("app.bookings.assignment")

NO_PROFESSIONALS_AT_BRANCH_DETAIL = "No professionals available at this branch"
NO_PROFESSIONAL_FREE_DETAIL = "No professionals available at the requested time"


def candidate_professional_ids(db: Session, branch_id: int) -> list[int]:
    return [professional.id for professional in list_branch_professionals(db, branch_id)]


def assign_professional(
    db: Session,
    branch_id: int,
    scheduled_at: datetime,
    duration_minutes: int,
    exclude_booking_id: int | None = None,
    candidates: list[int] | None = None,
) -> int:
    # first fit over ascending professional id
    if candidates is None:
        candidates = candidate_professional_ids(db, branch_id)
    if not candidates:
        raise NotFoundError(NO_PROFESSIONALS_AT_BRANCH_DETAIL)

    requested = TimeInterval.from_duration(scheduled_at, duration_minutes)
    for professional_id in candidates:
        if not is_professional_free(db, professional_id, requested, exclude_booking_id):
            continue
        logger.info("professional_assigned branch_id=%s professional_id=%s", branch_id, professional_id)
        return professional_id

    BOOKING_CONFLICTS.labels(reason="no_professional").inc()
    raise ConflictError(NO_PROFESSIONAL_FREE_DETAIL)
