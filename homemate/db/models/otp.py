# homemate/db/models/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional

class OTPCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    id: Optional[int] = Field(default=None, primary_key=True)
    # one pending code per number; a resend overwrites the row in place
    phone_number: str = Field(max_length=20, index=True, unique=True)
    ref: str = Field(default="", max_length=32)
    otp: str = Field(max_length=10)
    expires_at: datetime = Field(index=True)
    attempts: int = Field(default=0)
    verified: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
