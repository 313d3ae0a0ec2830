import logging
from typing import Optional

from sqlalchemy.engine import Engine

from ...application.ports.otp_store import OTPStore
from ...core.config import Settings
from ...exceptions import StoreUnavailableError
from .memory_store import InMemoryOTPStore

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("sql", "redis", "memory")


def build_otp_store(settings: Settings, engine: Optional[Engine] = None) -> OTPStore:
    """Pick the OTP store once at startup.

    A durable backend that cannot be reached is swapped for the in-process
    store; callers never see the difference beyond reduced durability.
    """
    backend = (settings.OTP_STORE_BACKEND or "memory").strip().lower()
    if backend not in STORE_BACKENDS:
        logger.warning(f"Unknown OTP_STORE_BACKEND '{backend}', using in-memory store")
        return InMemoryOTPStore()

    if backend == "memory":
        return InMemoryOTPStore()

    try:
        store = _build_durable(backend, settings, engine)
        store.ping()
    except StoreUnavailableError as e:
        logger.warning(f"OTP store '{backend}' unavailable, falling back to in-memory store: {e}")
        return InMemoryOTPStore()

    logger.info(f"Using '{backend}' OTP store")
    return store


def _build_durable(backend: str, settings: Settings, engine: Optional[Engine]) -> OTPStore:
    if backend == "redis":
        if not settings.REDIS_URL:
            raise StoreUnavailableError("REDIS_URL not configured")
        from .redis_store import RedisOTPStore
        return RedisOTPStore(settings.REDIS_URL, timeout=settings.STORE_TIMEOUT_SECONDS)

    if engine is None:
        from ...database import engine as default_engine
        engine = default_engine
    from .sql_store import SqlOTPStore
    return SqlOTPStore(engine)
