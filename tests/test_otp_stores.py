from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from homemate.application.ports.otp_store import OtpRecord
from homemate.db.models import OTPCode
from homemate.infrastructure.otp_store.memory_store import InMemoryOTPStore
from homemate.infrastructure.otp_store.sql_store import SqlOTPStore

PHONE = "+911234567890"


def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryOTPStore()
    return SqlOTPStore(sqlite_engine())


def record(code: str = "1234", attempts: int = 0) -> OtpRecord:
    now = datetime.utcnow()
    return OtpRecord(PHONE, code, expires_at=now + timedelta(minutes=10), attempts=attempts, created_at=now)


def test_get_missing_returns_none(store):
    assert store.get(PHONE) is None


def test_put_replaces_existing_pending_record(store):
    store.put(record("1111"))
    store.increment_attempts(PHONE)
    store.put(record("2222"))

    rec = store.get(PHONE)
    assert rec.code == "2222"
    assert rec.attempts == 0


def test_increment_attempts_is_cumulative(store):
    store.put(record())
    assert store.increment_attempts(PHONE) == 1
    assert store.increment_attempts(PHONE) == 2
    assert store.get(PHONE).attempts == 2


def test_increment_missing_returns_none(store):
    assert store.increment_attempts(PHONE) is None


def test_delete_reports_whether_removed(store):
    store.put(record())
    assert store.delete(PHONE) is True
    assert store.delete(PHONE) is False
    assert store.get(PHONE) is None


def test_ref_scoped_operations_ignore_replaced_record(store):
    old = record("1111")
    store.put(old)
    store.put(record("2222"))

    assert store.increment_attempts(PHONE, old.ref) is None
    assert store.delete(PHONE, old.ref) is False
    rec = store.get(PHONE)
    assert rec.code == "2222"
    assert rec.attempts == 0


def test_ref_scoped_operations_act_on_current_record(store):
    current = record()
    store.put(current)

    assert store.get(PHONE).ref == current.ref
    assert store.increment_attempts(PHONE, current.ref) == 1
    assert store.delete(PHONE, current.ref) is True
    assert store.get(PHONE) is None


def test_ping_succeeds(store):
    store.ping()


def test_memory_store_returns_copies():
    store = InMemoryOTPStore()
    store.put(record())
    store.get(PHONE).attempts = 99
    assert store.get(PHONE).attempts == 0


def test_sql_store_keeps_one_row_per_phone_number():
    engine = sqlite_engine()
    store = SqlOTPStore(engine)
    store.put(record("1111"))
    store.put(record("2222"))
    store.put(record("3333"))

    with Session(engine) as session:
        rows = session.exec(select(OTPCode).where(OTPCode.phone_number == PHONE)).all()
    assert [r.otp for r in rows] == ["3333"]


def test_sql_table_rejects_second_row_for_same_number():
    engine = sqlite_engine()
    SqlOTPStore(engine).put(record("1111"))

    with Session(engine) as session:
        session.add(OTPCode(phone_number=PHONE, otp="2222", expires_at=datetime.utcnow()))
        with pytest.raises(IntegrityError):
            session.commit()


def test_sql_store_unreachable_database_raises_store_unavailable(tmp_path):
    from homemate.exceptions import StoreUnavailableError

    engine = create_engine(f"sqlite:///{tmp_path}/missing/dir/otp.db")
    store = SqlOTPStore(engine)
    with pytest.raises(StoreUnavailableError):
        store.ping()
    with pytest.raises(StoreUnavailableError):
        store.get(PHONE)
