from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.db.models import Branch, Customer, Professional, ProfessionalBranch, Service, ServicePricing, User

PROFESSIONAL_NOT_AT_BRANCH_DETAIL = "Professional not found or not available at this branch"


def get_customer_by_slug(db: Session, customer_slug: str) -> Customer:
    customer = db.scalar(
        select(Customer).where(Customer.url_slug == customer_slug, Customer.is_active.is_(True))
    )
    if not customer:
        raise NotFoundError(f"Customer '{customer_slug}' not found")
    return customer


def get_branch(db: Session, branch_id: int) -> Branch:
    branch = db.scalar(select(Branch).where(Branch.id == branch_id, Branch.deleted_at.is_(None)))
    if not branch:
        raise NotFoundError(f"Branch with ID {branch_id} not found")
    return branch


def get_customer_branch(db: Session, branch_id: int, customer_id: int) -> Branch:
    # another tenant's branch is reported as missing
    branch = get_branch(db, branch_id)
    if branch.customer_id != customer_id:
        raise NotFoundError(f"Branch with ID {branch_id} not found")
    return branch


def get_service(db: Session, service_id: int) -> Service:
    service = db.scalar(select(Service).where(Service.id == service_id, Service.is_active.is_(True)))
    if not service:
        raise NotFoundError(f"Service with ID {service_id} not found")
    return service


def get_user(db: Session, user_id: int) -> User:
    user = db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def get_professional(db: Session, professional_id: int) -> Professional:
    professional = db.scalar(
        select(Professional).where(Professional.id == professional_id, Professional.is_active.is_(True))
    )
    if not professional:
        raise NotFoundError(f"Professional with ID {professional_id} not found")
    return professional


def get_customer_professional(db: Session, professional_id: int, customer_id: int) -> Professional:
    professional = get_professional(db, professional_id)
    if professional.customer_id != customer_id:
        raise NotFoundError(f"Professional with ID {professional_id} not found")
    return professional


def is_assigned_to_branch(db: Session, professional_id: int, branch_id: int) -> bool:
    link = db.scalar(
        select(ProfessionalBranch.id).where(
            ProfessionalBranch.professional_id == professional_id,
            ProfessionalBranch.branch_id == branch_id,
        )
    )
    return link is not None


def get_professional_at_branch(db: Session, professional_id: int, branch_id: int) -> Professional:
    professional = db.scalar(
        select(Professional)
        .join(ProfessionalBranch, ProfessionalBranch.professional_id == Professional.id)
        .where(
            Professional.id == professional_id,
            Professional.is_active.is_(True),
            ProfessionalBranch.branch_id == branch_id,
        )
    )
    if not professional:
        raise NotFoundError(PROFESSIONAL_NOT_AT_BRANCH_DETAIL)
    return professional


def list_branch_professionals(db: Session, branch_id: int) -> list[Professional]:
    """Active professionals of a branch in assignment order (ascending id, i.e. creation order)."""
    return list(
        db.scalars(
            select(Professional)
            .join(ProfessionalBranch, ProfessionalBranch.professional_id == Professional.id)
            .where(
                ProfessionalBranch.branch_id == branch_id,
                Professional.is_active.is_(True),
            )
            .order_by(Professional.id)
        ).all()
    )


def price_for(db: Session, service_id: int, branch_id: int) -> Decimal:
    price = db.scalar(
        select(ServicePricing.price).where(
            ServicePricing.service_id == service_id,
            ServicePricing.branch_id == branch_id,
        )
    )
    if price is None:
        raise NotFoundError("Pricing not found for service at this branch")
    return Decimal(price)
