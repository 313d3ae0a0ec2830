import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import delete, insert, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ...application.ports.otp_store import OTPStore, OtpRecord
from ...db.models import OTPCode
from ...exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_DIALECTS = ("postgresql", "sqlite")


class SqlOTPStore(OTPStore):
    name = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine

    def _pending(self, phone_number: str, ref: Optional[str] = None):
        clauses = [OTPCode.phone_number == phone_number, OTPCode.verified == False]  # noqa: E712
        if ref is not None:
            clauses.append(OTPCode.ref == ref)
        return clauses

    def _to_record(self, row: OTPCode) -> OtpRecord:
        return OtpRecord(
            phone_number=row.phone_number,
            code=row.otp,
            expires_at=row.expires_at,
            attempts=row.attempts,
            verified=row.verified,
            created_at=row.created_at,
            ref=row.ref,
        )

    def _upsert(self, values: Dict[str, Any]):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        else:
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        stmt = dialect_insert(OTPCode.__table__).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["phone_number"],
            set_={k: stmt.excluded[k] for k in values if k != "phone_number"},
        )

    def put(self, record: OtpRecord) -> None:
        values = {
            "phone_number": record.phone_number,
            "ref": record.ref,
            "otp": record.code,
            "expires_at": record.expires_at,
            "attempts": record.attempts,
            "verified": record.verified,
            "created_at": record.created_at,
            "updated_at": datetime.utcnow(),
        }
        try:
            if self.engine.dialect.name in _UPSERT_DIALECTS:
                with Session(self.engine) as session:
                    session.execute(self._upsert(values))
                    session.commit()
                return
            self._replace(values)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to store OTP: {e}") from e

    def _replace(self, values: Dict[str, Any], retries: int = 3) -> None:
        # Without ON CONFLICT, a concurrent insert for the same number shows
        # up as a unique violation; delete again and retry.
        for attempt in range(retries):
            try:
                with Session(self.engine) as session:
                    session.execute(
                        delete(OTPCode)
                        .where(OTPCode.phone_number == values["phone_number"])
                        .execution_options(synchronize_session=False)
                    )
                    session.execute(insert(OTPCode.__table__).values(**values))
                    session.commit()
                return
            except IntegrityError:
                if attempt == retries - 1:
                    raise
                logger.warning(f"Concurrent OTP write detected, retrying ({attempt + 1}/{retries})")

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        try:
            with Session(self.engine) as session:
                row = session.exec(select(OTPCode).where(*self._pending(phone_number))).first()
                return self._to_record(row) if row else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to load OTP: {e}") from e

    def delete(self, phone_number: str, ref: Optional[str] = None) -> bool:
        try:
            with Session(self.engine) as session:
                result = session.execute(
                    delete(OTPCode)
                    .where(*self._pending(phone_number, ref))
                    .execution_options(synchronize_session=False)
                )
                session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to delete OTP: {e}") from e

    def increment_attempts(self, phone_number: str, ref: Optional[str] = None) -> Optional[int]:
        # UPDATE takes the row lock, so the follow-up read inside the same
        # transaction sees exactly our increment.
        try:
            with Session(self.engine) as session:
                result = session.execute(
                    update(OTPCode)
                    .where(*self._pending(phone_number, ref))
                    .values(attempts=OTPCode.attempts + 1, updated_at=datetime.utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    session.rollback()
                    return None
                attempts = session.exec(
                    select(OTPCode.attempts).where(*self._pending(phone_number, ref))
                ).first()
                session.commit()
                return attempts
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to update OTP attempts: {e}") from e

    def ping(self) -> None:
        try:
            with Session(self.engine) as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Database unreachable: {e}") from e
