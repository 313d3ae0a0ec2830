from typing import Optional
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ...db.models import User
from ...application.ports.user_repo import UserRepository, UserDto

class SqlUserRepository(UserRepository):
    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=user.name,
            email=user.email,
            phone_number=user.phone_number,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.phone_number == phone_number)).first()
            return self._to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.id == user_id)).first()
            return self._to_dto(user) if user else None
