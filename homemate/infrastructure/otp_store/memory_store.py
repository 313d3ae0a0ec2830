import threading
from dataclasses import replace
from typing import Dict, Optional

from ...application.ports.otp_store import OTPStore, OtpRecord


class InMemoryOTPStore(OTPStore):
    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, OtpRecord] = {}

    def _pending(self, phone_number: str, ref: Optional[str]) -> Optional[OtpRecord]:
        rec = self._records.get(phone_number)
        if rec is None or rec.verified:
            return None
        if ref is not None and rec.ref != ref:
            return None
        return rec

    def put(self, record: OtpRecord) -> None:
        with self._lock:
            self._records[record.phone_number] = replace(record)

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        with self._lock:
            rec = self._pending(phone_number, None)
            # hand out a copy so callers cannot mutate stored state
            return replace(rec) if rec is not None else None

    def delete(self, phone_number: str, ref: Optional[str] = None) -> bool:
        with self._lock:
            if self._pending(phone_number, ref) is None:
                return False
            del self._records[phone_number]
            return True

    def increment_attempts(self, phone_number: str, ref: Optional[str] = None) -> Optional[int]:
        with self._lock:
            rec = self._pending(phone_number, ref)
            if rec is None:
                return None
            rec.attempts += 1
            return rec.attempts

    def ping(self) -> None:
        return None
