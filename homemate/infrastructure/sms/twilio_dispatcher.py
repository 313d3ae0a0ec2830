import logging
from typing import Optional

from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from twilio.base.exceptions import TwilioException

from ...application.ports.sms_dispatcher import SMSDispatcher, DispatchResult
from ...core.config import Settings
from ...exceptions import DispatchError

logger = logging.getLogger(__name__)


class TwilioSMSDispatcher(SMSDispatcher):
    name = "twilio"

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.account_sid = settings.TWILIO_ACCOUNT_SID
        self.auth_token = settings.TWILIO_AUTH_TOKEN
        self.from_number = settings.TWILIO_PHONE_NUMBER
        self.timeout = settings.SMS_TIMEOUT_SECONDS
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _get_client(self) -> Client:
        if self._client is None:
            http_client = TwilioHttpClient(timeout=self.timeout)
            self._client = Client(self.account_sid, self.auth_token, http_client=http_client)
        return self._client

    def send(self, phone_number: str, message: str) -> DispatchResult:
        if not self.configured:
            raise DispatchError(
                "Twilio credentials not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, and TWILIO_PHONE_NUMBER in .env"
            )
        try:
            result = self._get_client().messages.create(
                body=message,
                from_=self.from_number,
                to=phone_number,
            )
        except (TwilioException, OSError) as e:
            # requests transport errors (timeouts included) are OSErrors
            logger.error(f"Twilio SMS error: {e}")
            raise DispatchError(f"Failed to send SMS: {e}") from e
        return DispatchResult(success=True, message_id=result.sid)
