from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .application.ports.otp_store import OTPStore
from .application.ports.sms_dispatcher import SMSDispatcher
from .application.ports.user_repo import UserRepository
from .application.services.auth_service import AuthService
from .application.services.otp_service import OTPService
from .core.config import Settings
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.otp_store.factory import build_otp_store
from .infrastructure.otp_store.memory_store import InMemoryOTPStore
from .infrastructure.persistence.user_repository_memory import InMemoryUserRepository
from .infrastructure.persistence.user_repository_sql import SqlUserRepository
from .infrastructure.sms.factory import build_sms_dispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    database_ok: bool

    otp_store: OTPStore
    sms_dispatcher: SMSDispatcher
    user_repo: UserRepository
    audit: StdAuditLogger

    otp_service: OTPService
    auth_service: AuthService


def build_container(settings: Settings, engine: Optional[Engine] = None) -> Container:
    """Wire the app once at startup; nothing here is resolved per request."""
    if engine is None:
        from .database import engine

    from .database import create_db_and_tables
    try:
        create_db_and_tables(engine)
        database_ok = True
    except SQLAlchemyError:
        logger.exception("Database initialization failed, using in-memory fallbacks")
        database_ok = False

    if database_ok or settings.OTP_STORE_BACKEND.strip().lower() == "redis":
        otp_store = build_otp_store(settings, engine)
    else:
        otp_store = InMemoryOTPStore()

    user_repo: UserRepository = SqlUserRepository(engine) if database_ok else InMemoryUserRepository()
    sms_dispatcher = build_sms_dispatcher(settings)
    audit = StdAuditLogger()

    otp_service = OTPService(
        store=otp_store,
        dispatcher=sms_dispatcher,
        code_length=settings.OTP_LENGTH,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        max_attempts=settings.MAX_OTP_ATTEMPTS,
    )
    auth_service = AuthService(user_repo=user_repo, otp_service=otp_service, audit=audit)

    return Container(
        database_ok=database_ok,
        otp_store=otp_store,
        sms_dispatcher=sms_dispatcher,
        user_repo=user_repo,
        audit=audit,
        otp_service=otp_service,
        auth_service=auth_service,
    )
