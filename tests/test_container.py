import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from homemate.container import build_container
from homemate.core.config import Settings
from homemate.db.models import User
from homemate.exceptions import UserNotFoundError
from homemate.infrastructure.otp_store.memory_store import InMemoryOTPStore
from homemate.infrastructure.otp_store.sql_store import SqlOTPStore
from homemate.infrastructure.persistence.user_repository_memory import InMemoryUserRepository
from homemate.infrastructure.persistence.user_repository_sql import SqlUserRepository
from homemate.utils import decode_jwt_token

PHONE = "+15551234567"


def test_container_with_database_uses_sql_backends():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    container = build_container(Settings(OTP_STORE_BACKEND="sql", SMS_PROVIDER="console"), engine)

    assert container.database_ok is True
    assert isinstance(container.otp_store, SqlOTPStore)
    assert isinstance(container.user_repo, SqlUserRepository)
    assert container.sms_dispatcher.name == "console"

    with Session(engine) as session:
        user = User(name="Ravi", email="ravi@example.com", phone_number=PHONE)
        session.add(user)
        session.commit()
        user_id = user.id

    container.otp_service.send_otp(PHONE)
    code = container.otp_store.get(PHONE).code
    issued = container.auth_service.verify_otp_and_issue(PHONE, code)

    assert issued.user.id == user_id
    assert decode_jwt_token(issued.token)["userId"] == user_id
    assert container.otp_store.get(PHONE) is None


def test_container_without_database_falls_back_to_memory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path}/missing/homemate.db")
    container = build_container(Settings(OTP_STORE_BACKEND="sql", SMS_PROVIDER="console"), engine)

    assert container.database_ok is False
    assert isinstance(container.otp_store, InMemoryOTPStore)
    assert isinstance(container.user_repo, InMemoryUserRepository)

    container.otp_service.send_otp(PHONE)
    code = container.otp_store.get(PHONE).code
    with pytest.raises(UserNotFoundError):
        container.auth_service.verify_otp_and_issue(PHONE, code)
