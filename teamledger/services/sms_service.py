"""
SMS service - handles sending text messages.
Supports: Mock (development) and Twilio (production).
"""
import asyncio
import logging
from typing import Optional
from abc import ABC, abstractmethod

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from teamledger.config import settings

logger = logging.getLogger(__name__)


class SMSService(ABC):
    """Base SMS service interface."""
    
    @abstractmethod
    async def send_sms(self, to: str, message: str) -> bool:
        """Send a text message."""
        pass
    
    async def send_invite_sms(
        self, 
        to: str, 
        invite_link: str, 
        business_name: str, 
        role: str
    ) -> bool:
        """Send a team invitation by SMS."""
        message = (
            f"You've been invited to join {business_name} as {role} on Team Ledger. "
            f"Accept here: {invite_link}"
        )
        return await self.send_sms(to, message)


class MockSMSService(SMSService):
    """Mock SMS service for development. Logs messages instead of sending."""
    
    def __init__(self):
        self.sent_messages: list = []
    
    async def send_sms(self, to: str, message: str) -> bool:
        self.sent_messages.append({"to": to, "message": message})
        logger.info(f"MOCK SMS to={to}: {message}")
        return True
    
    def get_last_message(self) -> Optional[dict]:
        """Get the last sent message (for testing)."""
        return self.sent_messages[-1] if self.sent_messages else None


class TwilioSMSService(SMSService):
    """
    Twilio SMS service.
    Configure with TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER.
    """
    
    def __init__(self):
        self.client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        self.from_number = settings.TWILIO_PHONE_NUMBER
    
    async def send_sms(self, to: str, message: str) -> bool:
        """Send through the Twilio REST client without blocking the event loop."""
        loop = asyncio.get_running_loop()
        
        def _send():
            return self.client.messages.create(
                body=message,
                from_=self.from_number,
                to=to
            )
        
        try:
            sms = await loop.run_in_executor(None, _send)
            logger.info(f"SMS sent to {to} (sid={sms.sid})")
            return True
        except TwilioException as e:
            logger.error(f"Failed to send SMS to {to}: {e}")
            return False


# =============================================================================
# SMS SERVICE SINGLETON
# =============================================================================

_sms_service: Optional[SMSService] = None


def get_sms_service() -> SMSService:
    """Get the SMS service instance."""
    global _sms_service
    
    if _sms_service is None:
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER:
            logger.info("Using Twilio SMS Service")
            _sms_service = TwilioSMSService()
        else:
            logger.info("Using Mock SMS Service (messages are logged)")
            _sms_service = MockSMSService()
    
    return _sms_service


def set_sms_service(service: Optional[SMSService]) -> None:
    """Set custom SMS service (for testing)."""
    global _sms_service
    _sms_service = service
