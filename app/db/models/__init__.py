from app.db.models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus
from app.db.models.branch import Branch
from app.db.models.customer import Customer
from app.db.models.professional import Professional, ProfessionalBranch
from app.db.models.schedule import BranchSchedule, ProfessionalSchedule
from app.db.models.service import Service, ServicePricing
from app.db.models.user import User, UserRole

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "Branch",
    "BranchSchedule",
    "Customer",
    "Professional",
    "ProfessionalBranch",
    "ProfessionalSchedule",
    "Service",
    "ServicePricing",
    "User",
    "UserRole",
]
