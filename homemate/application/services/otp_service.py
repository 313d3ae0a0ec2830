import enum
import hmac
import logging
import random
import threading
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Type

from ..ports.otp_store import OTPStore, OtpRecord
from ..ports.sms_dispatcher import SMSDispatcher
from ...utils import mask_phone_number
from ...exceptions import (
    ExhaustedError,
    ExpiredError,
    MismatchError,
    NotFoundError,
    OTPVerificationError,
)

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE = "Your HomeMate verification code is {code}. Valid for {minutes} minutes."

_rng = random.SystemRandom()


def generate_otp(length: int = 4) -> str:
    """Uniform over the fixed-width range, so no leading zeros."""
    return str(_rng.randint(10 ** (length - 1), 10 ** length - 1))


class _KeyLock:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc):
        self._lock.release()


class KeyedLock:
    """Per-key mutex; locks are dropped once no caller holds a reference."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, _KeyLock]" = weakref.WeakValueDictionary()

    def for_key(self, key: str) -> _KeyLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = _KeyLock()
                self._locks[key] = lock
            return lock


class VerificationStatus(str, enum.Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    MISMATCH = "mismatch"


_FAILURES: Dict[VerificationStatus, Type[OTPVerificationError]] = {
    VerificationStatus.NOT_FOUND: NotFoundError,
    VerificationStatus.EXPIRED: ExpiredError,
    VerificationStatus.EXHAUSTED: ExhaustedError,
    VerificationStatus.MISMATCH: MismatchError,
}


@dataclass
class SendResult:
    message: str
    expires_in: int
    success: bool = True


@dataclass
class VerificationResult:
    status: VerificationStatus
    message: str
    attempts_remaining: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status is VerificationStatus.VERIFIED

    def raise_for_failure(self) -> None:
        if self.success:
            return
        raise _FAILURES[self.status](self.message, self.attempts_remaining)


@dataclass
class OTPService:
    store: OTPStore
    dispatcher: SMSDispatcher
    code_length: int = 4
    expiry_minutes: int = 10
    max_attempts: int = 5
    clock: Callable[[], datetime] = datetime.utcnow
    _locks: KeyedLock = field(default_factory=KeyedLock, init=False, repr=False)

    @property
    def expires_in(self) -> int:
        return self.expiry_minutes * 60

    def send_otp(self, phone_number: str) -> SendResult:
        code = generate_otp(self.code_length)
        now = self.clock()
        record = OtpRecord(
            phone_number=phone_number,
            code=code,
            expires_at=now + timedelta(minutes=self.expiry_minutes),
            attempts=0,
            verified=False,
            created_at=now,
        )
        with self._locks.for_key(phone_number):
            self.store.put(record)

        message = MESSAGE_TEMPLATE.format(code=code, minutes=self.expiry_minutes)
        result = self.dispatcher.send(phone_number, message)
        logger.info(f"OTP dispatched to {mask_phone_number(phone_number)} via {self.dispatcher.name} (id={result.message_id})")

        return SendResult(message="OTP sent successfully", expires_in=self.expires_in)

    def resend_otp(self, phone_number: str) -> SendResult:
        # No cooldown between resends.
        return self.send_otp(phone_number)

    def verify_otp(self, phone_number: str, code: str) -> VerificationResult:
        with self._locks.for_key(phone_number):
            return self._verify_locked(phone_number, code)

    def _verify_locked(self, phone_number: str, code: str) -> VerificationResult:
        record = self.store.get(phone_number)
        if record is None:
            return self._not_found()

        if self.clock() > record.expires_at:
            self.store.delete(phone_number, record.ref)
            logger.info(f"OTP for {mask_phone_number(phone_number)} expired")
            return VerificationResult(
                VerificationStatus.EXPIRED,
                "OTP has expired. Please request a new one.",
            )

        if record.attempts >= self.max_attempts:
            return self._exhausted(phone_number, record.ref)

        # ref-scoped: a resend from another worker since the read makes this a miss
        attempts = self.store.increment_attempts(phone_number, record.ref)
        if attempts is None:
            return self._not_found()
        if attempts > self.max_attempts:
            # another process incremented past the limit first
            return self._exhausted(phone_number, record.ref)

        if not hmac.compare_digest(record.code.encode(), code.encode()):
            return VerificationResult(
                VerificationStatus.MISMATCH,
                "Invalid OTP. Please try again.",
                attempts_remaining=self.max_attempts - attempts,
            )

        if not self.store.delete(phone_number, record.ref):
            return self._not_found()

        logger.info(f"OTP for {mask_phone_number(phone_number)} verified")
        return VerificationResult(VerificationStatus.VERIFIED, "OTP verified successfully")

    def _not_found(self) -> VerificationResult:
        return VerificationResult(VerificationStatus.NOT_FOUND, "OTP not found or already used")

    def _exhausted(self, phone_number: str, ref: str) -> VerificationResult:
        self.store.delete(phone_number, ref)
        logger.warning(f"Max OTP attempts reached for {mask_phone_number(phone_number)}")
        return VerificationResult(
            VerificationStatus.EXHAUSTED,
            "Maximum verification attempts exceeded. Please request a new OTP.",
        )
