from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_roles
from app.api.pagination import LimitParam, PageParam
from app.core.config import settings
from app.db.models import User, UserRole
from app.db.session import get_db
from app.schemas.user import UserListResponse, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("", response_model=UserListResponse, status_code=status.HTTP_200_OK)
def list_users(
    _: User = Depends(require_roles(UserRole.ADMIN)),
    page: PageParam = 1,
    limit: LimitParam = settings.default_page_limit,
    customer_id: int | None = None,
    db: Session = Depends(get_db),
) -> UserListResponse:
    filters = [User.customer_id == customer_id] if customer_id is not None else []
    total = db.scalar(select(func.count()).select_from(User).where(*filters)) or 0
    users = db.scalars(
        select(User).where(*filters).order_by(User.id).limit(limit).offset((page - 1) * limit)
    ).all()
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        limit=limit,
    )
