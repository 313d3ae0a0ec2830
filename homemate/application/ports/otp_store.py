import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol


def new_ref() -> str:
    return uuid.uuid4().hex


@dataclass
class OtpRecord:
    phone_number: str
    code: str
    expires_at: datetime
    attempts: int = 0
    verified: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    # identifies this issuance; a resend gets a new one
    ref: str = field(default_factory=new_ref)


class OTPStore(Protocol):
    """One pending OTP per phone number.

    ``put`` replaces whatever unverified record the number already has.
    ``increment_attempts`` is an atomic read-modify-write and returns the new
    counter, or ``None`` when there is nothing pending. ``delete`` returns
    whether a record was actually removed, so only one caller can consume a
    given OTP.

    When ``ref`` is given, ``increment_attempts`` and ``delete`` only act on
    the pending record with that ref and behave as if nothing were pending
    once the record has been replaced.
    """

    def put(self, record: OtpRecord) -> None:
        ...

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        ...

    def delete(self, phone_number: str, ref: Optional[str] = None) -> bool:
        ...

    def increment_attempts(self, phone_number: str, ref: Optional[str] = None) -> Optional[int]:
        ...

    def ping(self) -> None:
        ...
