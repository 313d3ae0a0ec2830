import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...application.ports.sms_dispatcher import SMSDispatcher, DispatchResult
from ...core.config import Settings
from ...exceptions import DispatchError

logger = logging.getLogger(__name__)


class SNSSMSDispatcher(SMSDispatcher):
    name = "sns"

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.region = settings.AWS_REGION or "us-east-1"
        self.access_key_id = settings.AWS_ACCESS_KEY_ID
        self.secret_access_key = settings.AWS_SECRET_ACCESS_KEY
        self.timeout = settings.SMS_TIMEOUT_SECONDS
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "sns",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                config=Config(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={"max_attempts": 2},
                ),
            )
        return self._client

    def send(self, phone_number: str, message: str) -> DispatchResult:
        if not self.configured:
            raise DispatchError(
                "AWS credentials not configured. Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in .env"
            )
        try:
            result = self._get_client().publish(PhoneNumber=phone_number, Message=message)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"AWS SNS error: {e}")
            raise DispatchError(f"Failed to send SMS: {e}") from e
        return DispatchResult(success=True, message_id=result.get("MessageId"))
