# homemate/routers/auth_router.py
from datetime import datetime
from typing import Any, Dict
import logging
import uuid

from fastapi import APIRouter, Depends, Request

from ..application.ports.audit_logger import AuditLogger
from ..application.ports.user_repo import UserDto
from ..application.services.auth_service import AuthService
from ..application.services.otp_service import OTPService
from ..container import Container
from ..exceptions import StoreUnavailableError
from ..schemas import (
    SendOTPRequest, ResendOTPRequest, SendOTPResponse,
    VerifyOTPRequest, VerifyOTPResponse, UserResponse, CurrentUserResponse, ErrorResponse,
)
from .deps import get_auth_service, get_audit_logger, get_container, get_current_user, get_otp_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def get_request_meta(request: Request) -> Dict[str, Any]:
    """Extract client information for audit logging"""
    return {
        "request_id": request.headers.get("x-request-id") or str(uuid.uuid4()),
        "ip_address": request.client.host if request.client else None,
    }


@router.post("/send-otp", response_model=SendOTPResponse, responses={500: {"model": ErrorResponse}})
def send_otp(
    payload: SendOTPRequest,
    request: Request,
    otp_service: OTPService = Depends(get_otp_service),
    audit: AuditLogger = Depends(get_audit_logger),
):
    meta = get_request_meta(request)
    result = otp_service.send_otp(payload.phone_number)
    audit.log("otp_send", payload.phone_number, request_id=meta["request_id"], ip_address=meta["ip_address"])
    return SendOTPResponse(message=result.message, expires_in=result.expires_in)


@router.post(
    "/verify-otp",
    response_model=VerifyOTPResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def verify_otp(
    payload: VerifyOTPRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Verify the OTP, then issue a JWT for the user registered on that number."""
    issued = auth_service.verify_otp_and_issue(payload.phone_number, payload.otp, get_request_meta(request))
    user = issued.user
    return VerifyOTPResponse(
        message="OTP verified successfully",
        token=issued.token,
        user=UserResponse(id=user.id, name=user.name, email=user.email, phone_number=user.phone_number),
    )


@router.post("/resend-otp", response_model=SendOTPResponse, responses={500: {"model": ErrorResponse}})
def resend_otp(
    payload: ResendOTPRequest,
    request: Request,
    otp_service: OTPService = Depends(get_otp_service),
    audit: AuditLogger = Depends(get_audit_logger),
):
    meta = get_request_meta(request)
    result = otp_service.resend_otp(payload.phone_number)
    audit.log("otp_resend", payload.phone_number, request_id=meta["request_id"], ip_address=meta["ip_address"])
    return SendOTPResponse(message=result.message, expires_in=result.expires_in)


@router.get("/me", response_model=CurrentUserResponse, responses={401: {"model": ErrorResponse}})
def get_me(user: UserDto = Depends(get_current_user)):
    return CurrentUserResponse(
        user=UserResponse(id=user.id, name=user.name, email=user.email, phone_number=user.phone_number),
    )


@router.get("/health")
def health_check(container: Container = Depends(get_container)):
    store = container.otp_store
    try:
        store.ping()
        store_status = "healthy"
    except StoreUnavailableError as e:
        logger.error(f"OTP store health check failed: {e}")
        store_status = "unhealthy"

    return {
        "status": "healthy" if store_status == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "services": {
            "database": "healthy" if container.database_ok else "unavailable",
            "otp_store": {"backend": getattr(store, "name", type(store).__name__), "status": store_status},
            "sms_provider": container.sms_dispatcher.name,
        },
    }
