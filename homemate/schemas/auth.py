# homemate/schemas/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional

from ..exceptions import ValidationError
from ..utils import normalize_phone_number, normalize_otp_code


class SendOTPRequest(BaseModel):
    phone_number: str = Field(..., alias="phoneNumber", description="Phone number, E.164 with optional leading +")

    class Config:
        populate_by_name = True

    @validator('phone_number', pre=True)
    def validate_phone(cls, v):
        return normalize_phone_number(v)


class ResendOTPRequest(SendOTPRequest):
    pass


class VerifyOTPRequest(BaseModel):
    phone_number: str = Field(..., alias="phoneNumber", description="Phone number the OTP was sent to")
    otp: str = Field(..., description="4-digit OTP")

    class Config:
        populate_by_name = True

    @validator('phone_number', pre=True)
    def validate_phone(cls, v):
        phone_number = v.strip() if isinstance(v, str) else ""
        if not phone_number:
            raise ValidationError('Phone number is required')
        return phone_number

    @validator('otp', pre=True)
    def validate_otp(cls, v):
        return normalize_otp_code(v)


class SendOTPResponse(BaseModel):
    message: str
    expires_in: int = Field(..., alias="expiresIn")

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    class Config:
        populate_by_name = True


class VerifyOTPResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    user: UserResponse


class ErrorResponse(BaseModel):
    message: str
    attempts_remaining: Optional[int] = Field(None, alias="attemptsRemaining")

    class Config:
        populate_by_name = True


__all__ = [
    "SendOTPRequest",
    "ResendOTPRequest",
    "VerifyOTPRequest",
    "SendOTPResponse",
    "UserResponse",
    "VerifyOTPResponse",
    "CurrentUserResponse",
    "ErrorResponse",
]
