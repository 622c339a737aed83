import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    context: dict[str, Any] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.context = context
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Validation errors: caller mistakes, never retried
# ---------------------------------------------------------------------------


class DriverNotFoundError(AppError):
    def __init__(self, external_code: str) -> None:
        super().__init__(
            f"Driver '{external_code}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            context={"external_code": external_code},
        )


class DriverAlreadyExistsError(AppError):
    def __init__(self, external_code: str) -> None:
        super().__init__(
            f"Driver '{external_code}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            context={"external_code": external_code},
        )


class InvalidRangeError(AppError):
    def __init__(self, start_date: object, end_date: object) -> None:
        super().__init__(
            "end_date must not be before start_date",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            context={"start_date": str(start_date), "end_date": str(end_date)},
        )


class RequestNotFoundError(AppError):
    def __init__(self, request_id: object) -> None:
        super().__init__(
            "Leave request not found",
            status_code=status.HTTP_404_NOT_FOUND,
            context={"request_id": str(request_id)},
        )


# ---------------------------------------------------------------------------
# Conflict errors: business-rule violations
# ---------------------------------------------------------------------------


class OverlappingRequestError(AppError):
    def __init__(self, conflicting_request_id: object) -> None:
        super().__init__(
            "Request overlaps with an existing pending or approved request",
            status_code=status.HTTP_409_CONFLICT,
            context={"conflicting_request_id": str(conflicting_request_id)},
        )


class InvalidTransitionError(AppError):
    def __init__(self, current_status: str, target_status: str) -> None:
        super().__init__(
            f"Cannot move a {current_status} request to {target_status}",
            status_code=status.HTTP_409_CONFLICT,
            context={"current_status": current_status, "target_status": target_status},
        )


class InsufficientBalanceError(AppError):
    def __init__(self, remaining: int, requested: int) -> None:
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Insufficient vacation days: {remaining} remaining, {requested} requested",
            status_code=status.HTTP_409_CONFLICT,
            context={"remaining": remaining, "requested": requested, "shortfall": requested - remaining},
        )


# ---------------------------------------------------------------------------
# Concurrency errors
# ---------------------------------------------------------------------------


class RetryExceededError(AppError):
    """Raised when a driver's critical section stays contended after all retries."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            "The driver's ledger is busy, please retry",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            context={"attempts": attempts},
        )


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            context=exc.context,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _persistence_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalError",
            detail="The operation failed and no changes were applied",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _persistence_exception_handler)  # type: ignore[arg-type]
