from typing import Any, Dict, Optional
from dataclasses import dataclass

from ..ports.user_repo import UserRepository, UserDto
from ..ports.audit_logger import AuditLogger
from .otp_service import OTPService
from ...exceptions import UserNotFoundError
from ...utils import create_jwt_token


@dataclass
class AuthResult:
    token: str
    user: UserDto


@dataclass
class AuthService:
    user_repo: UserRepository
    otp_service: OTPService
    audit: Optional[AuditLogger] = None

    def verify_otp_and_issue(self, phone_number: str, code: str, request_meta: Optional[Dict[str, Any]] = None) -> AuthResult:
        meta = request_meta or {}
        result = self.otp_service.verify_otp(phone_number, code)
        self._audit("otp_verify", phone_number, success=result.success, meta=meta,
                    details={"status": result.status.value, "attempts_remaining": result.attempts_remaining})
        result.raise_for_failure()

        user = self.user_repo.get_by_phone(phone_number)
        if not user:
            raise UserNotFoundError("No user found with this phone number. Please register first.")

        token = create_jwt_token({"userId": user.id})
        self._audit("login", phone_number, user_id=user.id, meta=meta)
        return AuthResult(token=token, user=user)

    def _audit(self, action: str, phone_number: str, user_id: Optional[str] = None, success: bool = True,
               meta: Optional[Dict[str, Any]] = None, details: Optional[Dict[str, Any]] = None) -> None:
        if self.audit is None:
            return
        meta = meta or {}
        self.audit.log(action, phone_number, user_id=user_id, request_id=meta.get("request_id"),
                       ip_address=meta.get("ip_address"), success=success, details=details)
