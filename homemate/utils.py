import hashlib
import re
import jwt
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .core.config import settings
from .exceptions import ValidationError

PHONE_NUMBER_RE = re.compile(r'^\+?[1-9]\d{1,14}$')


# =========================
# Input validation
# =========================
def normalize_phone_number(value: Optional[str]) -> str:
    """Trim and check against E.164 (optional leading +, up to 15 digits)."""
    phone_number = value.strip() if isinstance(value, str) else ""
    if not phone_number:
        raise ValidationError("Phone number is required")
    if not PHONE_NUMBER_RE.match(phone_number):
        raise ValidationError("Please provide a valid phone number")
    return phone_number


def normalize_otp_code(value: Optional[str], length: Optional[int] = None) -> str:
    length = length or settings.OTP_LENGTH
    code = value.strip() if isinstance(value, str) else ""
    if len(code) != length:
        raise ValidationError(f"OTP must be {length} digits")
    if not code.isdigit():
        raise ValidationError("OTP must be numeric")
    return code


def hash_phone_number(phone_number: str) -> str:
    """Hash phone number for audit logs (one-way)"""
    return hashlib.sha256(phone_number.encode()).hexdigest()


def mask_phone_number(phone_number: str) -> str:
    if len(phone_number) <= 4:
        return phone_number
    return f"{phone_number[:-4]}XXXX"


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
