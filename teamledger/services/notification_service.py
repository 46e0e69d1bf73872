"""
Invite notification dispatch.
Renders the invite link and sends it by email or SMS depending on the target.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

from teamledger.config import settings
from teamledger.models.business import Business
from teamledger.models.invite import Invite
from teamledger.models.user import User
from teamledger.services.email_service import EmailService, get_email_service
from teamledger.services.sms_service import SMSService, get_sms_service

logger = logging.getLogger(__name__)


def build_invite_link(invite: Invite, base_url: Optional[str] = None) -> str:
    """Landing page link carrying token, businessId, role and cashbookId."""
    params = {
        "token": invite.token,
        "businessId": str(invite.business_id),
        "role": invite.role,
    }
    if invite.cashbook_id:
        params["cashbookId"] = str(invite.cashbook_id)
    return f"{(base_url or settings.FRONTEND_URL).rstrip('/')}/invite?{urlencode(params)}"


class InviteNotifier:
    """Sends invite links through the channel matching the invite target."""
    
    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        sms_service: Optional[SMSService] = None
    ):
        self.email_service = email_service or get_email_service()
        self.sms_service = sms_service or get_sms_service()
    
    async def send_invite(
        self, 
        invite: Invite, 
        business: Business, 
        inviter: Optional[User] = None
    ) -> bool:
        """
        Dispatch the invite. Returns False if the channel reported a failure;
        the invite itself stays valid either way.
        """
        link = build_invite_link(invite)
        
        if invite.email:
            sent = await self.email_service.send_invite_email(
                to=invite.email,
                invite_link=link,
                business_name=business.name,
                role=invite.role,
                inviter_name=inviter.display_name if inviter else business.name,
                expires_in_days=settings.INVITE_EXPIRE_DAYS
            )
        else:
            sent = await self.sms_service.send_invite_sms(
                to=invite.phone,
                invite_link=link,
                business_name=business.name,
                role=invite.role
            )
        
        if not sent:
            logger.warning(f"Invite {invite.id} could not be delivered to {invite.target}")
        return sent
