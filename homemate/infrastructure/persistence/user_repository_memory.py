import threading
from datetime import datetime
from typing import Dict, Optional
import uuid

from ...application.ports.user_repo import UserRepository, UserDto


class InMemoryUserRepository(UserRepository):
    """Stand-in used while the database is unreachable."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: Dict[str, UserDto] = {}

    def add(self, name: str, phone_number: str, email: Optional[str] = None) -> UserDto:
        now = datetime.utcnow()
        user = UserDto(id=str(uuid.uuid4()), name=name, email=email, phone_number=phone_number,
                       created_at=now, updated_at=now)
        with self._lock:
            self._users[user.id] = user
        return user

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        with self._lock:
            return next((u for u in self._users.values() if u.phone_number == phone_number), None)

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        with self._lock:
            return self._users.get(user_id)
