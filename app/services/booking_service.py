import logging
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import (
    BookingError,
    BookingValidationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from app.core.metrics import BOOKING_TRANSITIONS
from app.db.models import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus, Customer, User, UserRole
from app.schemas.booking import BookingCreateRequest, BookingUpdateRequest
from app.services.assignment_service import assign_professional, candidate_professional_ids
from app.services.catalog_service import (
    get_branch,
    get_professional,
    get_professional_at_branch,
    get_service,
    get_user,
    is_assigned_to_branch,
    price_for,
)
from app.services.conflict_service import PROFESSIONAL_BUSY_DETAIL, ensure_professional_free, ensure_user_free
from app.services.intervals import TimeInterval, as_utc
from app.services.locking import hold_booking_resources

logger = logging.getLogger("app.bookings")

INVALID_TOKEN_DETAIL = "Invalid confirmation token"
TOKEN_CUSTOMER_MISMATCH_DETAIL = "Booking not found for this customer"
PAST_TIME_DETAIL = "Scheduled time must be in the future"
NOT_OWNER_DETAIL = "You can only update your own bookings"
CLIENT_STATUS_CHANGE_DETAIL = "Clients cannot change booking status. Contact staff to modify status."

_RELATIONS = (
    selectinload(Booking.user),
    selectinload(Booking.customer),
    selectinload(Booking.branch),
    selectinload(Booking.service),
    selectinload(Booking.professional),
)


def _already(booking: Booking) -> ConflictError:
    return ConflictError(f"Booking is already {booking.status}")


def _ensure_future(scheduled_at: datetime) -> None:
    if scheduled_at <= datetime.now(UTC):
        raise BookingValidationError(PAST_TIME_DETAIL)


def get_booking(db: Session, booking_id: int, customer_id: int | None = None) -> Booking:
    query = select(Booking).options(*_RELATIONS).where(Booking.id == booking_id)
    if customer_id is not None:
        query = query.where(Booking.customer_id == customer_id)
    booking = db.scalar(query)
    if not booking:
        raise NotFoundError(f"Booking with ID {booking_id} not found")
    return booking


def get_booking_by_token(db: Session, token: str, customer_slug: str) -> Booking:
    row = db.execute(
        select(Booking, Customer.url_slug)
        .join(Customer, Booking.customer_id == Customer.id)
        .options(*_RELATIONS)
        .where(Booking.confirmation_token == token)
    ).first()
    if not row:
        raise NotFoundError(INVALID_TOKEN_DETAIL)
    booking, url_slug = row
    if url_slug != customer_slug:
        raise NotFoundError(TOKEN_CUSTOMER_MISMATCH_DETAIL)
    return booking


def list_bookings(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: BookingStatus | None = None,
    customer_id: int | None = None,
    user_id: int | None = None,
) -> tuple[list[Booking], int]:
    filters = []
    if status is not None:
        filters.append(Booking.status == status.value)
    if customer_id is not None:
        filters.append(Booking.customer_id == customer_id)
    if user_id is not None:
        filters.append(Booking.user_id == user_id)

    total = db.scalar(select(func.count()).select_from(Booking).where(*filters)) or 0
    bookings = db.scalars(
        select(Booking)
        .options(*_RELATIONS)
        .where(*filters)
        .order_by(Booking.scheduled_at.desc(), Booking.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()
    return list(bookings), total


def _validate_booking_entities(
    db: Session,
    branch_id: int,
    service_id: int,
    professional_id: int | None,
    user_id: int,
    expected_customer_id: int | None = None,
):
    branch = get_branch(db, branch_id)
    service = get_service(db, service_id)
    user = get_user(db, user_id)

    customer_id = branch.customer_id
    if service.customer_id != customer_id:
        raise BookingValidationError("Service does not belong to the same customer as branch")
    if user.role != UserRole.ADMIN.value and user.customer_id != customer_id:
        raise BookingValidationError("User does not belong to the same customer as branch")

    professional = None
    if professional_id is not None:
        professional = get_professional(db, professional_id)
        if professional.customer_id != customer_id:
            raise BookingValidationError("Professional does not belong to the same customer as branch")
        if not is_assigned_to_branch(db, professional.id, branch.id):
            raise BookingValidationError("Professional is not available at this branch")

    if expected_customer_id is not None and customer_id != expected_customer_id:
        raise BookingValidationError("Booking entities do not belong to the expected customer")

    return branch, service, professional, user


def _write_or_conflict(db: Session) -> None:
    # the PostgreSQL exclusion constraint on active bookings is the last line of defence
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(PROFESSIONAL_BUSY_DETAIL) from None


def create_booking(
    db: Session,
    payload: BookingCreateRequest,
    user_id: int,
    customer_id: int | None = None,
) -> Booking:
    scheduled_at = as_utc(payload.scheduled_at)
    _ensure_future(scheduled_at)

    branch, service, professional, user = _validate_booking_entities(
        db,
        branch_id=payload.branch_id,
        service_id=payload.service_id,
        professional_id=payload.professional_id,
        user_id=user_id,
        expected_customer_id=customer_id,
    )
    requested = TimeInterval.from_duration(scheduled_at, service.duration_minutes)
    candidates = [professional.id] if professional else candidate_professional_ids(db, branch.id)

    try:
        with hold_booking_resources(db, professional_ids=candidates, user_ids=[user.id]):
            if professional:
                ensure_professional_free(db, professional.id, requested)
                assigned_professional_id = professional.id
            else:
                assigned_professional_id = assign_professional(
                    db,
                    branch_id=branch.id,
                    scheduled_at=scheduled_at,
                    duration_minutes=service.duration_minutes,
                    candidates=candidates,
                )
            ensure_user_free(db, user.id, requested)

            booking = Booking(
                customer_id=branch.customer_id,
                user_id=user.id,
                branch_id=branch.id,
                service_id=service.id,
                professional_id=assigned_professional_id,
                scheduled_at=requested.start,
                ends_at=requested.end,
                status=BookingStatus.PENDING.value,
                confirmation_token=str(uuid4()),
                total_price=price_for(db, service.id, branch.id),
            )
            db.add(booking)
            _write_or_conflict(db)
    except BookingError:
        db.rollback()
        raise

    BOOKING_TRANSITIONS.labels(transition="created").inc()
    logger.info(
        "booking_created booking_id=%s professional_id=%s user_id=%s interval=%s",
        booking.id,
        booking.professional_id,
        booking.user_id,
        requested,
    )
    return get_booking(db, booking.id)


def _confirm(db: Session, booking: Booking) -> Booking:
    if booking.status != BookingStatus.PENDING.value:
        raise _already(booking)

    try:
        with hold_booking_resources(db, professional_ids=[booking.professional_id], user_ids=[booking.user_id]):
            db.refresh(booking)
            if booking.status != BookingStatus.PENDING.value:
                raise _already(booking)

            occupied = TimeInterval(booking.scheduled_at, booking.ends_at)
            if booking.professional_id is not None:
                ensure_professional_free(db, booking.professional_id, occupied, exclude_booking_id=booking.id)
            ensure_user_free(db, booking.user_id, occupied, exclude_booking_id=booking.id)

            booking.confirm()
            _write_or_conflict(db)
    except BookingError:
        db.rollback()
        raise

    BOOKING_TRANSITIONS.labels(transition="confirmed").inc()
    logger.info("booking_confirmed booking_id=%s", booking.id)
    return get_booking(db, booking.id)


def confirm_booking(db: Session, token: str, customer_slug: str) -> Booking:
    """Confirm by token, re-checking the calendars as they are now."""
    booking = get_booking_by_token(db, token, customer_slug)
    return _confirm(db, booking)


def _mark_cancelled(db: Session, booking_id: int) -> bool:
    now = datetime.now(UTC)
    result = db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
        .values(status=BookingStatus.CANCELLED.value, cancelled_at=now, updated_at=now)
    )
    db.commit()
    changed = result.rowcount == 1
    if changed:
        BOOKING_TRANSITIONS.labels(transition="cancelled").inc()
        logger.info("booking_cancelled booking_id=%s", booking_id)
    return changed


def cancel_booking(db: Session, booking_id: int, customer_id: int | None = None) -> Booking:
    """Cancel by id. Cancelling an already cancelled booking succeeds without changes."""
    booking = get_booking(db, booking_id, customer_id)
    _mark_cancelled(db, booking.id)
    db.refresh(booking)
    return booking


def cancel_booking_by_token(db: Session, token: str, customer_slug: str) -> Booking:
    booking = get_booking_by_token(db, token, customer_slug)
    if not _mark_cancelled(db, booking.id):
        db.refresh(booking)
        raise _already(booking)
    db.refresh(booking)
    return booking


def _transition_status(db: Session, booking: Booking, target: BookingStatus) -> Booking:
    if booking.status == target.value:
        return booking
    if target is BookingStatus.CONFIRMED:
        return _confirm(db, booking)
    if target is BookingStatus.CANCELLED:
        if not _mark_cancelled(db, booking.id):
            raise _already(booking)
        db.refresh(booking)
        return booking
    raise ConflictError(f"Cannot move booking from {booking.status} to {target.value}")


def _reschedule(db: Session, booking: Booking, payload: BookingUpdateRequest, fields: set[str]) -> Booking:
    # professional first, then the time, then the conflict check for the pair
    reassign = "professional_id" in fields and payload.professional_id is None
    professional_id = booking.professional_id
    if "professional_id" in fields and payload.professional_id is not None:
        professional_id = get_professional_at_branch(db, payload.professional_id, booking.branch_id).id

    scheduled_at = as_utc(booking.scheduled_at)
    if payload.scheduled_at is not None:
        scheduled_at = as_utc(payload.scheduled_at)
        _ensure_future(scheduled_at)

    if not booking.is_active:
        raise _already(booking)

    requested = TimeInterval.from_duration(scheduled_at, booking.service.duration_minutes)
    candidates = candidate_professional_ids(db, booking.branch_id) if reassign else [professional_id]

    try:
        with hold_booking_resources(
            db,
            professional_ids=[*candidates, booking.professional_id],
            user_ids=[booking.user_id],
        ):
            db.refresh(booking)
            if not booking.is_active:
                raise _already(booking)

            if reassign:
                professional_id = assign_professional(
                    db,
                    branch_id=booking.branch_id,
                    scheduled_at=scheduled_at,
                    duration_minutes=booking.service.duration_minutes,
                    exclude_booking_id=booking.id,
                    candidates=candidates,
                )
            elif professional_id is not None:
                ensure_professional_free(db, professional_id, requested, exclude_booking_id=booking.id)
            ensure_user_free(db, booking.user_id, requested, exclude_booking_id=booking.id)

            booking.professional_id = professional_id
            booking.scheduled_at = requested.start
            booking.ends_at = requested.end
            booking.updated_at = datetime.now(UTC)
            _write_or_conflict(db)
    except BookingError:
        db.rollback()
        raise

    BOOKING_TRANSITIONS.labels(transition="rescheduled").inc()
    logger.info(
        "booking_rescheduled booking_id=%s professional_id=%s interval=%s",
        booking.id,
        professional_id,
        requested,
    )
    return booking


def update_booking(
    db: Session,
    booking_id: int,
    payload: BookingUpdateRequest,
    customer_id: int | None = None,
) -> Booking:
    booking = get_booking(db, booking_id, customer_id)
    fields = payload.model_fields_set

    if "scheduled_at" in fields and payload.scheduled_at is None:
        raise BookingValidationError("scheduled_at cannot be null")

    if {"scheduled_at", "professional_id"} & fields:
        booking = _reschedule(db, booking, payload, fields)

    if "status" in fields and payload.status is not None:
        booking = _transition_status(db, booking, payload.status)

    return get_booking(db, booking.id)


def _ensure_owner(booking: Booking, actor: User, detail: str) -> None:
    if actor.role == UserRole.CLIENT.value and booking.user_id != actor.id:
        raise ForbiddenError(detail)


def update_booking_for_actor(
    db: Session,
    booking_id: int,
    payload: BookingUpdateRequest,
    customer_id: int,
    actor: User,
) -> Booking:
    # clients may reschedule their own bookings but never change status
    if actor.role == UserRole.CLIENT.value:
        _ensure_owner(get_booking(db, booking_id, customer_id), actor, NOT_OWNER_DETAIL)
        if "status" in payload.model_fields_set:
            raise ForbiddenError(CLIENT_STATUS_CHANGE_DETAIL)
    return update_booking(db, booking_id, payload, customer_id)


def get_booking_for_actor(db: Session, booking_id: int, customer_id: int, actor: User) -> Booking:
    booking = get_booking(db, booking_id, customer_id)
    _ensure_owner(booking, actor, "You can only view your own bookings")
    return booking


def cancel_booking_for_actor(db: Session, booking_id: int, customer_id: int, actor: User) -> Booking:
    booking = get_booking(db, booking_id, customer_id)
    _ensure_owner(booking, actor, "You can only cancel your own bookings")
    return cancel_booking(db, booking.id, customer_id)
