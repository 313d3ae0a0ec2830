import logging
import time

from ...application.ports.sms_dispatcher import SMSDispatcher, DispatchResult
from ...utils import mask_phone_number

logger = logging.getLogger(__name__)


class ConsoleSMSDispatcher(SMSDispatcher):
    """Development provider that logs messages instead of sending them."""

    name = "console"

    def send(self, phone_number: str, message: str) -> DispatchResult:
        logger.info(f"SMS (development mode) to {mask_phone_number(phone_number)}: {message}")
        return DispatchResult(success=True, message_id=f"dev-{int(time.time() * 1000)}")
