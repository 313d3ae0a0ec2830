from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DispatchResult:
    success: bool
    message_id: Optional[str] = None


class SMSDispatcher(Protocol):
    name: str

    def send(self, phone_number: str, message: str) -> DispatchResult:
        ...
