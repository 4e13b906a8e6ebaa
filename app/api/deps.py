from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.rate_limiter import rate_limiter
from app.core.security import decode_access_token
from app.db.models import Customer, User, UserRole
from app.db.session import get_db
from app.services.catalog_service import get_customer_by_slug

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub", ""))
    except (ValueError, TypeError):
        raise unauthorized_exc

    user = db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise unauthorized_exc
    return user


def require_roles(*roles: UserRole | str) -> Callable[[User], User]:
    allowed_roles = {role.value if isinstance(role, UserRole) else role for role in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return checker


def get_customer(customer_slug: str, db: Session = Depends(get_db)) -> Customer:
    return get_customer_by_slug(db, customer_slug)


def _ensure_member(user: User, customer: Customer) -> None:
    if user.role != UserRole.ADMIN.value and user.customer_id != customer.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this customer",
        )


def get_customer_member(
    customer: Customer = Depends(get_customer),
    current_user: User = Depends(get_current_user),
) -> User:
    _ensure_member(current_user, customer)
    return current_user


def require_customer_roles(*roles: UserRole | str) -> Callable[..., User]:
    allowed_roles = {role.value if isinstance(role, UserRole) else role for role in roles}

    def checker(current_user: User = Depends(get_customer_member)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return checker


def public_rate_limit(endpoint: str) -> Callable[[Request], None]:
    def limiter(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        allowed, retry_after = rate_limiter.hit(
            key=f"public:{endpoint}:{client_ip}",
            limit=settings.public_rate_limit_max_attempts,
            window_seconds=settings.public_rate_limit_window_seconds,
        )
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

    return limiter
