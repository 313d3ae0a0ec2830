from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from .core.config import settings

logger = logging.getLogger(__name__)


class OTPError(Exception):
    """Base class for every error raised by the OTP flow"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OTPError, ValueError):
    """Malformed phone number or code, rejected before reaching the service"""


class OTPVerificationError(OTPError):
    def __init__(self, message: str, attempts_remaining: Optional[int] = None):
        super().__init__(message)
        self.attempts_remaining = attempts_remaining


class NotFoundError(OTPVerificationError):
    pass


class ExpiredError(OTPVerificationError):
    pass


class ExhaustedError(OTPVerificationError):
    pass


class MismatchError(OTPVerificationError):
    pass


class DispatchError(OTPError):
    """SMS could not be sent (provider unconfigured or remote failure)"""


class StoreUnavailableError(OTPError):
    """The OTP store backend cannot be reached"""


class UserNotFoundError(OTPError):
    pass


def create_error_response(error_message: str, **extra) -> dict:
    """Create a standardized error response"""
    body = {"message": error_message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail))
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        errors.append({
            "field": loc[-1] if loc else None,
            "msg": str(err.get("msg", "")).removeprefix("Value error, "),
        })
    return JSONResponse(
        status_code=400,
        content=create_error_response("Validation failed", errors=errors)
    )


async def otp_verification_exception_handler(request: Request, exc: OTPVerificationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=create_error_response(exc.message, attemptsRemaining=exc.attempts_remaining)
    )


async def user_not_found_exception_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=create_error_response(exc.message, code="USER_NOT_FOUND", requiresRegistration=True)
    )


async def infrastructure_exception_handler(request: Request, exc: OTPError) -> JSONResponse:
    """DispatchError / StoreUnavailableError surface as 500"""
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content=create_error_response(exc.message, error=exc.message)
        )
    return JSONResponse(
        status_code=500,
        content=create_error_response(exc.message or "Internal server error")
    )
