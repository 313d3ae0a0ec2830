import enum
import logging

from ...application.ports.sms_dispatcher import SMSDispatcher
from ...core.config import Settings
from .console_dispatcher import ConsoleSMSDispatcher

logger = logging.getLogger(__name__)


class SMSProviderKind(str, enum.Enum):
    CONSOLE = "console"
    TWILIO = "twilio"
    SNS = "sns"

    @classmethod
    def parse(cls, value: str) -> "SMSProviderKind":
        name = (value or "").strip().lower()
        if name == "aws":
            return cls.SNS
        try:
            return cls(name)
        except ValueError:
            logger.warning(f"Unknown SMS_PROVIDER '{value}', using console")
            return cls.CONSOLE


def build_sms_dispatcher(settings: Settings) -> SMSDispatcher:
    kind = SMSProviderKind.parse(settings.SMS_PROVIDER)
    if kind is SMSProviderKind.TWILIO:
        from .twilio_dispatcher import TwilioSMSDispatcher
        dispatcher = TwilioSMSDispatcher(settings)
    elif kind is SMSProviderKind.SNS:
        from .sns_dispatcher import SNSSMSDispatcher
        dispatcher = SNSSMSDispatcher(settings)
    else:
        dispatcher = ConsoleSMSDispatcher()

    if not getattr(dispatcher, "configured", True):
        logger.warning(f"SMS provider '{kind.value}' is missing credentials; sends will fail")
    logger.info(f"Using '{kind.value}' SMS provider")
    return dispatcher
