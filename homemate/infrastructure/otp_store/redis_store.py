from datetime import datetime
from typing import Optional

import redis

from ...application.ports.otp_store import OTPStore, OtpRecord
from ...exceptions import StoreUnavailableError

# Keys outlive expires_at slightly so a late verify still sees "expired"
# rather than "not found".
EXPIRY_GRACE_SECONDS = 60

# ARGV[1] is the expected ref, or '' to match any pending record.
_INCR_IF_CURRENT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return nil
end
if ARGV[1] ~= '' and redis.call('HGET', KEYS[1], 'ref') ~= ARGV[1] then
    return nil
end
return redis.call('HINCRBY', KEYS[1], 'attempts', 1)
"""

_DEL_IF_CURRENT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
if ARGV[1] ~= '' and redis.call('HGET', KEYS[1], 'ref') ~= ARGV[1] then
    return 0
end
return redis.call('DEL', KEYS[1])
"""


class RedisOTPStore(OTPStore):
    name = "redis"

    def __init__(self, url: str, prefix: str = "otp:", timeout: float = 5.0) -> None:
        self.client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        self.prefix = prefix
        self._incr = self.client.register_script(_INCR_IF_CURRENT)
        self._del = self.client.register_script(_DEL_IF_CURRENT)

    def _key(self, phone_number: str) -> str:
        return f"{self.prefix}{phone_number}"

    def put(self, record: OtpRecord) -> None:
        key = self._key(record.phone_number)
        ttl = int((record.expires_at - record.created_at).total_seconds()) + EXPIRY_GRACE_SECONDS
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(key)
            pipe.hset(key, mapping={
                "ref": record.ref,
                "code": record.code,
                "expires_at": record.expires_at.isoformat(),
                "attempts": record.attempts,
                "verified": int(record.verified),
                "created_at": record.created_at.isoformat(),
            })
            pipe.expire(key, max(ttl, 1))
            pipe.execute()
        except redis.RedisError as e:
            raise StoreUnavailableError(f"Failed to store OTP: {e}") from e

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        try:
            data = self.client.hgetall(self._key(phone_number))
        except redis.RedisError as e:
            raise StoreUnavailableError(f"Failed to load OTP: {e}") from e
        if not data or "code" not in data or int(data.get("verified", 0)):
            return None
        return OtpRecord(
            phone_number=phone_number,
            code=data["code"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
            attempts=int(data.get("attempts", 0)),
            verified=False,
            created_at=datetime.fromisoformat(data["created_at"]),
            ref=data.get("ref", ""),
        )

    def delete(self, phone_number: str, ref: Optional[str] = None) -> bool:
        try:
            return bool(self._del(keys=[self._key(phone_number)], args=[ref or ""]))
        except redis.RedisError as e:
            raise StoreUnavailableError(f"Failed to delete OTP: {e}") from e

    def increment_attempts(self, phone_number: str, ref: Optional[str] = None) -> Optional[int]:
        try:
            value = self._incr(keys=[self._key(phone_number)], args=[ref or ""])
        except redis.RedisError as e:
            raise StoreUnavailableError(f"Failed to update OTP attempts: {e}") from e
        return None if value is None else int(value)

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise StoreUnavailableError(f"Redis unreachable: {e}") from e
