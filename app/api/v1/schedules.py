from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.deps import get_customer, get_customer_member, require_customer_roles
from app.db.models import Customer, User, UserRole
from app.db.session import get_db
from app.schemas.schedule import (
    BranchScheduleResponse,
    BranchScheduleUpsertRequest,
    ProfessionalScheduleResponse,
    ProfessionalScheduleUpsertRequest,
)
from app.services.catalog_service import get_customer_branch, get_customer_professional
from app.services.schedule_service import (
    list_branch_schedule,
    list_professional_schedule,
    upsert_branch_schedule,
    upsert_professional_schedule,
)

router = APIRouter(prefix="/salon/{customer_slug}", tags=["schedules"])

# 0 = Sunday ... 6 = Saturday
WeekdayParam = Annotated[int, Path(ge=0, le=6)]


@router.get(
    "/branches/{branch_id}/schedules",
    response_model=list[BranchScheduleResponse],
    status_code=status.HTTP_200_OK,
)
def get_branch_schedules(
    branch_id: int,
    customer: Customer = Depends(get_customer),
    _: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> list[BranchScheduleResponse]:
    branch = get_customer_branch(db, branch_id, customer.id)
    return [BranchScheduleResponse.model_validate(row) for row in list_branch_schedule(db, branch.id)]


@router.put(
    "/branches/{branch_id}/schedules/{weekday}",
    response_model=BranchScheduleResponse,
    status_code=status.HTTP_200_OK,
)
def put_branch_schedule(
    branch_id: int,
    weekday: WeekdayParam,
    payload: BranchScheduleUpsertRequest,
    customer: Customer = Depends(get_customer),
    _: User = Depends(require_customer_roles(UserRole.STAFF, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> BranchScheduleResponse:
    branch = get_customer_branch(db, branch_id, customer.id)
    row = upsert_branch_schedule(
        db,
        branch_id=branch.id,
        weekday=weekday,
        start_time=payload.start_time,
        end_time=payload.end_time,
        is_closed=payload.is_closed,
    )
    return BranchScheduleResponse.model_validate(row)


@router.get(
    "/professionals/{professional_id}/schedules",
    response_model=list[ProfessionalScheduleResponse],
    status_code=status.HTTP_200_OK,
)
def get_professional_schedules(
    professional_id: int,
    customer: Customer = Depends(get_customer),
    _: User = Depends(get_customer_member),
    db: Session = Depends(get_db),
) -> list[ProfessionalScheduleResponse]:
    professional = get_customer_professional(db, professional_id, customer.id)
    return [
        ProfessionalScheduleResponse.model_validate(row)
        for row in list_professional_schedule(db, professional.id)
    ]


@router.put(
    "/professionals/{professional_id}/schedules/{weekday}",
    response_model=ProfessionalScheduleResponse,
    status_code=status.HTTP_200_OK,
)
def put_professional_schedule(
    professional_id: int,
    weekday: WeekdayParam,
    payload: ProfessionalScheduleUpsertRequest,
    customer: Customer = Depends(get_customer),
    _: User = Depends(require_customer_roles(UserRole.STAFF, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> ProfessionalScheduleResponse:
    professional = get_customer_professional(db, professional_id, customer.id)
    row = upsert_professional_schedule(
        db,
        professional_id=professional.id,
        weekday=weekday,
        start_time=payload.start_time,
        end_time=payload.end_time,
        is_closed=payload.is_closed,
        break_start_time=payload.break_start_time,
        break_end_time=payload.break_end_time,
    )
    return ProfessionalScheduleResponse.model_validate(row)
