from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.request_context import request_id_ctx_var


class BookingError(HTTPException):
    """Service-layer failure rendered with a stable ``error.code``."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "booking_error"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class BookingValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


def _error_payload(code: str, message: str, detail):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=getattr(exc, "code", f"http_{exc.status_code}"),
            message=str(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="request_validation_error",
            message="Request validation failed",
            detail=jsonable_errors(exc),
        ),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # pydantic puts the raw exception object under ctx for model validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        ctx = error.get("ctx")
        if ctx:
            error["ctx"] = {key: str(value) for key, value in ctx.items()}
        errors.append(error)
    return errors
