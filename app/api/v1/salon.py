from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_customer, get_customer_member, public_rate_limit, require_customer_roles
from app.api.pagination import LimitParam, PageParam
from app.core.config import settings
from app.db.models import BookingStatus, Customer, User, UserRole
from app.db.session import get_db
from app.schemas.availability import AvailabilityResponse
from app.schemas.booking import (
    BookingConfirmRequest,
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    BookingUpdateRequest,
)
from app.services.availability_service import check_availability
from app.services.booking_service import (
    cancel_booking_by_token,
    cancel_booking_for_actor,
    confirm_booking,
    create_booking,
    get_booking_by_token,
    get_booking_for_actor,
    list_bookings,
    update_booking_for_actor,
)

router = APIRouter(prefix="/salon/{customer_slug}", tags=["salon"])


def _page(bookings, total: int, page: int, limit: int) -> BookingListResponse:
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(booking) for booking in bookings],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(public_rate_limit("availability"))],
)
def get_availability(
    branch_id: int,
    service_id: int,
    date: str,
    professional_id: int | None = None,
    customer: Customer = Depends(get_customer),
    db: Session = Depends(get_db),
) -> AvailabilityResponse:
    return check_availability(
        db,
        customer=customer,
        branch_id=branch_id,
        service_id=service_id,
        date_value=date,
        professional_id=professional_id,
    )


@router.get("/bookings", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
def list_customer_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    page: PageParam = 1,
    limit: LimitParam = settings.default_page_limit,
    customer: Customer = Depends(get_customer),
    _: User = Depends(require_customer_roles(UserRole.STAFF, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BookingListResponse:
    bookings, total = list_bookings(db, page=page, limit=limit, status=status_filter, customer_id=customer.id)
    return _page(bookings, total, page, limit)


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_customer_booking(
    payload: BookingCreateRequest,
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = create_booking(db, payload=payload, user_id=current_user.id, customer_id=customer.id)
    return BookingResponse.from_booking(booking)


@router.get("/bookings/my", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
def list_my_bookings(
    page: PageParam = 1,
    limit: LimitParam = settings.default_page_limit,
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> BookingListResponse:
    bookings, total = list_bookings(db, page=page, limit=limit, customer_id=customer.id, user_id=current_user.id)
    return _page(bookings, total, page, limit)


@router.get(
    "/bookings/token/{token}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(public_rate_limit("booking_token"))],
)
def get_booking_with_token(
    customer_slug: str,
    token: str,
    db: Session = Depends(get_db),
) -> BookingResponse:
    return BookingResponse.from_booking(get_booking_by_token(db, token=token, customer_slug=customer_slug))


@router.post(
    "/bookings/confirm",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(public_rate_limit("booking_confirm"))],
)
def confirm_booking_with_token(
    customer_slug: str,
    payload: BookingConfirmRequest,
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = confirm_booking(db, token=payload.token, customer_slug=customer_slug)
    return BookingResponse.from_booking(booking)


@router.delete(
    "/bookings/cancel/{token}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(public_rate_limit("booking_cancel"))],
)
def cancel_booking_with_token(
    customer_slug: str,
    token: str,
    db: Session = Depends(get_db),
) -> Response:
    cancel_booking_by_token(db, token=token, customer_slug=customer_slug)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/bookings/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_customer_booking(
    booking_id: int,
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = get_booking_for_actor(db, booking_id, customer_id=customer.id, actor=current_user)
    return BookingResponse.from_booking(booking)


@router.patch("/bookings/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def update_customer_booking(
    booking_id: int,
    payload: BookingUpdateRequest,
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = update_booking_for_actor(
        db,
        booking_id=booking_id,
        payload=payload,
        customer_id=customer.id,
        actor=current_user,
    )
    return BookingResponse.from_booking(booking)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_customer_booking(
    booking_id: int,
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> Response:
    cancel_booking_for_actor(db, booking_id, customer_id=customer.id, actor=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
