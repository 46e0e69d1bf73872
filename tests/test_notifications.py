"""
Tests for invite links and delivery.
"""
import uuid
from datetime import datetime, timedelta
from types import SimpleNamespace
from urllib.parse import urlparse, parse_qs

from teamledger.models import Business, Invite, User
from teamledger.services.email_service import MockEmailService
from teamledger.services.notification_service import InviteNotifier, build_invite_link
from twilio.base.exceptions import TwilioException

from teamledger.services.sms_service import MockSMSService, TwilioSMSService


def _invite(**kwargs) -> Invite:
    params = {
        "business_id": uuid.uuid4(),
        "invited_by": uuid.uuid4(),
        "role": "Staff",
        "cashbook_id": uuid.uuid4(),
        "email": "new@example.com",
        "token": "tok-123",
        "expires_at": datetime.utcnow() + timedelta(days=7),
    }
    params.update(kwargs)
    return Invite(**params)


class TestInviteLink:
    def test_carries_token_business_role_and_cashbook(self):
        invite = _invite()
        link = build_invite_link(invite, base_url="https://app.example.com/")
        parsed = urlparse(link)
        query = parse_qs(parsed.query)

        assert parsed.netloc == "app.example.com"
        assert parsed.path == "/invite"
        assert query["token"] == ["tok-123"]
        assert query["businessId"] == [str(invite.business_id)]
        assert query["role"] == ["Staff"]
        assert query["cashbookId"] == [str(invite.cashbook_id)]

    def test_partner_link_has_no_cashbook(self):
        link = build_invite_link(_invite(role="Partner", cashbook_id=None), base_url="https://app.example.com")
        assert "cashbookId" not in parse_qs(urlparse(link).query)


class TestInviteNotifier:
    def setup_method(self):
        self.email = MockEmailService()
        self.sms = MockSMSService()
        self.notifier = InviteNotifier(email_service=self.email, sms_service=self.sms)
        self.business = Business(name="Corner Shop", owner_id=uuid.uuid4())

    async def test_email_target(self):
        inviter = User(full_name="Olivia Owner")
        sent = await self.notifier.send_invite(_invite(), self.business, inviter)

        assert sent is True
        email = self.email.get_last_email()
        assert email["to"] == "new@example.com"
        assert "Olivia Owner" in email["subject"]
        assert "Corner Shop" in email["subject"]
        assert "token=tok-123" in email["body"]
        assert self.sms.sent_messages == []

    async def test_phone_target(self):
        invite = _invite(email=None, phone="+254700000001", role="Partner", cashbook_id=None)
        sent = await self.notifier.send_invite(invite, self.business)

        assert sent is True
        message = self.sms.get_last_message()
        assert message["to"] == "+254700000001"
        assert "Corner Shop" in message["message"]
        assert "Partner" in message["message"]
        assert self.email.sent_emails == []

    async def test_failure_is_reported(self):
        async def fail(to, message):
            return False

        self.sms.send_sms = fail
        invite = _invite(email=None, phone="+254700000001")
        assert await self.notifier.send_invite(invite, self.business) is False


class _FakeMessages:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(sid="SM123")


def _twilio_sender(messages: _FakeMessages) -> TwilioSMSService:
    sender = TwilioSMSService.__new__(TwilioSMSService)
    sender.client = SimpleNamespace(messages=messages)
    sender.from_number = "+15550000000"
    return sender


class TestTwilioSMSService:
    async def test_sends_through_client(self):
        messages = _FakeMessages()
        sender = _twilio_sender(messages)

        assert await sender.send_sms("+15551234567", "You're invited") is True
        assert messages.calls == [
            {"body": "You're invited", "from_": "+15550000000", "to": "+15551234567"}
        ]

    async def test_client_error_reports_failure(self):
        messages = _FakeMessages(error=TwilioException("bad number"))
        sender = _twilio_sender(messages)

        assert await sender.send_sms("+15551234567", "hi") is False
        assert len(messages.calls) == 1
