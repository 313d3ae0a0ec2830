import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..application.services.auth_service import AuthService
from ..application.services.otp_service import OTPService
from ..application.ports.audit_logger import AuditLogger
from ..application.ports.user_repo import UserDto
from ..container import Container
from ..utils import decode_jwt_token

logger = logging.getLogger(__name__)

# Auth scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_otp_service(request: Request) -> OTPService:
    return get_container(request).otp_service


def get_auth_service(request: Request) -> AuthService:
    return get_container(request).auth_service


def get_audit_logger(request: Request) -> AuditLogger:
    return get_container(request).audit


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> UserDto:
    """Resolve the bearer token issued by verify-otp to its user."""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")

    payload = decode_jwt_token(credentials.credentials)
    if not payload or not payload.get("userId"):
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = get_container(request).user_repo.get_by_id(str(payload["userId"]))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
