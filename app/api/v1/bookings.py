from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import require_roles
from app.api.pagination import LimitParam, PageParam
from app.core.config import settings
from app.db.models import BookingStatus, User, UserRole
from app.db.session import get_db
from app.schemas.booking import (
    AdminBookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    BookingUpdateRequest,
)
from app.services.booking_service import (
    cancel_booking,
    create_booking,
    get_booking,
    list_bookings,
    update_booking,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
def list_all_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    page: PageParam = 1,
    limit: LimitParam = settings.default_page_limit,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BookingListResponse:
    bookings, total = list_bookings(db, page=page, limit=limit, status=status_filter)
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(booking) for booking in bookings],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking_for_user(
    payload: AdminBookingCreateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = create_booking(db, payload=payload, user_id=payload.user_id)
    return BookingResponse.from_booking(booking)


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking_by_id(
    booking_id: int,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BookingResponse:
    return BookingResponse.from_booking(get_booking(db, booking_id))


@router.patch("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def update_booking_by_id(
    booking_id: int,
    payload: BookingUpdateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = update_booking(db, booking_id=booking_id, payload=payload)
    return BookingResponse.from_booking(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_booking_by_id(
    booking_id: int,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> Response:
    cancel_booking(db, booking_id=booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
