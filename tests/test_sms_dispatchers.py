import logging

import pytest

from homemate.core.config import Settings
from homemate.exceptions import DispatchError
from homemate.infrastructure.sms.console_dispatcher import ConsoleSMSDispatcher
from homemate.infrastructure.sms.factory import SMSProviderKind, build_sms_dispatcher

PHONE = "+911234567890"


def make_settings(**overrides) -> Settings:
    base = dict(
        SMS_PROVIDER="console",
        TWILIO_ACCOUNT_SID="",
        TWILIO_AUTH_TOKEN="",
        TWILIO_PHONE_NUMBER="",
        AWS_ACCESS_KEY_ID="",
        AWS_SECRET_ACCESS_KEY="",
    )
    base.update(overrides)
    return Settings(**base)


def test_console_dispatcher_returns_dev_message_id():
    result = ConsoleSMSDispatcher().send(PHONE, "hello")
    assert result.success is True
    assert result.message_id.startswith("dev-")


def test_console_dispatcher_masks_phone_number_in_log(caplog):
    with caplog.at_level(logging.INFO, logger="homemate.infrastructure.sms.console_dispatcher"):
        ConsoleSMSDispatcher().send(PHONE, "hi")

    assert "+91123456XXXX" in caplog.text
    assert PHONE not in caplog.text


@pytest.mark.parametrize("value,kind", [
    ("console", SMSProviderKind.CONSOLE),
    ("TWILIO", SMSProviderKind.TWILIO),
    ("aws", SMSProviderKind.SNS),
    ("sns", SMSProviderKind.SNS),
    ("carrier-pigeon", SMSProviderKind.CONSOLE),
    ("", SMSProviderKind.CONSOLE),
])
def test_provider_kind_parse(value, kind):
    assert SMSProviderKind.parse(value) is kind


def test_factory_builds_selected_provider():
    pytest.importorskip("twilio")
    pytest.importorskip("boto3")
    assert build_sms_dispatcher(make_settings()).name == "console"
    assert build_sms_dispatcher(make_settings(SMS_PROVIDER="twilio")).name == "twilio"
    assert build_sms_dispatcher(make_settings(SMS_PROVIDER="aws")).name == "sns"


# ---- Twilio ----

class FakeTwilioMessages:
    def __init__(self, error=None):
        self.created = []
        self.error = error

    def create(self, body, from_, to):
        if self.error:
            raise self.error
        self.created.append({"body": body, "from_": from_, "to": to})
        return type("Msg", (), {"sid": "SM123"})()


class FakeTwilioClient:
    def __init__(self, error=None):
        self.messages = FakeTwilioMessages(error)


def twilio_settings():
    return make_settings(
        SMS_PROVIDER="twilio",
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="secret",
        TWILIO_PHONE_NUMBER="+15550001111",
    )


def test_twilio_unconfigured_raises_dispatch_error():
    pytest.importorskip("twilio")
    from homemate.infrastructure.sms.twilio_dispatcher import TwilioSMSDispatcher

    with pytest.raises(DispatchError) as exc:
        TwilioSMSDispatcher(make_settings()).send(PHONE, "hi")
    assert "Twilio credentials not configured" in exc.value.message


def test_twilio_send_uses_configured_sender():
    pytest.importorskip("twilio")
    from homemate.infrastructure.sms.twilio_dispatcher import TwilioSMSDispatcher

    client = FakeTwilioClient()
    result = TwilioSMSDispatcher(twilio_settings(), client=client).send(PHONE, "hi")

    assert result.message_id == "SM123"
    assert client.messages.created == [{"body": "hi", "from_": "+15550001111", "to": PHONE}]


def test_twilio_remote_failure_raises_dispatch_error():
    pytest.importorskip("twilio")
    from twilio.base.exceptions import TwilioException
    from homemate.infrastructure.sms.twilio_dispatcher import TwilioSMSDispatcher

    client = FakeTwilioClient(error=TwilioException("invalid number"))
    with pytest.raises(DispatchError) as exc:
        TwilioSMSDispatcher(twilio_settings(), client=client).send(PHONE, "hi")
    assert "Failed to send SMS" in exc.value.message


def test_twilio_timeout_raises_dispatch_error():
    pytest.importorskip("twilio")
    from homemate.infrastructure.sms.twilio_dispatcher import TwilioSMSDispatcher

    client = FakeTwilioClient(error=TimeoutError("read timed out"))
    with pytest.raises(DispatchError):
        TwilioSMSDispatcher(twilio_settings(), client=client).send(PHONE, "hi")


# ---- AWS SNS ----

class FakeSNS:
    def __init__(self, error=None):
        self.published = []
        self.error = error

    def publish(self, PhoneNumber, Message):
        if self.error:
            raise self.error
        self.published.append((PhoneNumber, Message))
        return {"MessageId": "sns-1"}


def sns_settings():
    return make_settings(SMS_PROVIDER="sns", AWS_ACCESS_KEY_ID="AKIA", AWS_SECRET_ACCESS_KEY="secret")


def test_sns_unconfigured_raises_dispatch_error():
    pytest.importorskip("boto3")
    from homemate.infrastructure.sms.sns_dispatcher import SNSSMSDispatcher

    with pytest.raises(DispatchError) as exc:
        SNSSMSDispatcher(make_settings()).send(PHONE, "hi")
    assert "AWS credentials not configured" in exc.value.message


def test_sns_send_publishes_message():
    pytest.importorskip("boto3")
    from homemate.infrastructure.sms.sns_dispatcher import SNSSMSDispatcher

    client = FakeSNS()
    result = SNSSMSDispatcher(sns_settings(), client=client).send(PHONE, "hi")

    assert result.success is True
    assert result.message_id == "sns-1"
    assert client.published == [(PHONE, "hi")]


def test_sns_client_error_raises_dispatch_error():
    pytest.importorskip("boto3")
    from botocore.exceptions import ClientError
    from homemate.infrastructure.sms.sns_dispatcher import SNSSMSDispatcher

    error = ClientError({"Error": {"Code": "InvalidParameter", "Message": "bad number"}}, "Publish")
    with pytest.raises(DispatchError):
        SNSSMSDispatcher(sns_settings(), client=FakeSNS(error)).send(PHONE, "hi")
