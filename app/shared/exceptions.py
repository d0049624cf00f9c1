"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from app.core.enums import RoleEnum

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception.

    ``code`` and ``message`` are shown to every caller. ``reason`` is the
    internal reason code and is only exposed to admin actors.
    """

    status_code = 400
    code = "app_error"

    def __init__(self, message: str, reason: str | None = None) -> None:
        self.message = message
        self.reason = reason
        super().__init__(message)


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class SlotUnavailableException(ConflictException):
    """Raised when a booking loses the race for a slot."""

    code = "slot_unavailable"


class SlotNoLongerAvailableException(ConflictException):
    """Raised when a reschedule approval loses the race for the requested slot."""

    code = "slot_no_longer_available"


class AlreadyTerminalException(ConflictException):
    """Raised when booking or request is already in a terminal state."""

    code = "already_terminal"


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class InvalidTransitionException(BusinessRuleException):
    """Raised when a status change is outside the permitted graph."""

    code = "invalid_transition"


class RequestExpiredException(AppException):
    """Raised when a decision is attempted on an expired reschedule request."""

    status_code = 410
    code = "request_expired"


class BookingPersistenceException(AppException):
    """Raised when a booking row could not be written after its slot was taken."""

    status_code = 500
    code = "booking_not_persisted"


def _is_admin_request(request: Request) -> bool:
    actor = getattr(request.state, "actor", None)
    return actor is not None and actor.role == RoleEnum.ADMIN


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    error: dict[str, str] = {"code": exc.code, "message": exc.message}
    if exc.reason is not None and _is_admin_request(request):
        error["reason"] = exc.reason
    return JSONResponse(status_code=exc.status_code, content={"error": error})


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
