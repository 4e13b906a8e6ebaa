from datetime import datetime

from pydantic import BaseModel, Field

from app.db.models import Booking, BookingStatus
from app.services.intervals import as_utc


class BookingCreateRequest(BaseModel):
    branch_id: int
    service_id: int
    # None lets the engine pick the first free professional
    professional_id: int | None = None
    scheduled_at: datetime


class AdminBookingCreateRequest(BookingCreateRequest):
    user_id: int


class BookingUpdateRequest(BaseModel):
    """Partial update. ``professional_id: null`` asks for automatic reassignment."""

    scheduled_at: datetime | None = None
    professional_id: int | None = None
    status: BookingStatus | None = None


class BookingConfirmRequest(BaseModel):
    token: str = Field(min_length=1, max_length=64)


class BookingResponse(BaseModel):
    id: int
    display_id: str
    user_id: int
    user_name: str
    customer_id: int
    branch_id: int
    branch_name: str
    service_id: int
    service_name: str
    professional_id: int | None
    professional_name: str | None
    scheduled_at: datetime
    ends_at: datetime
    status: BookingStatus
    total_price: str
    currency: str
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            display_id=booking.display_id,
            user_id=booking.user_id,
            user_name=booking.user.name,
            customer_id=booking.customer_id,
            branch_id=booking.branch_id,
            branch_name=booking.branch.name,
            service_id=booking.service_id,
            service_name=booking.service.name,
            professional_id=booking.professional_id,
            professional_name=booking.professional.name if booking.professional else None,
            scheduled_at=as_utc(booking.scheduled_at),
            ends_at=as_utc(booking.ends_at),
            status=booking.status,
            total_price=f"{booking.total_price:.2f}",
            currency=booking.customer.currency,
            created_at=as_utc(booking.created_at),
            updated_at=as_utc(booking.updated_at) if booking.updated_at else None,
        )


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    page: int
    limit: int
