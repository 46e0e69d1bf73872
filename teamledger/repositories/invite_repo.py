"""
Invite repository.
Status changes are compare-and-set on the current status, so two racing
requests cannot both resolve the same invite.
"""
import uuid
from typing import Optional, List
from datetime import datetime, timedelta

from sqlmodel import select
from sqlalchemy import update
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.config import settings
from teamledger.core.roles import InviteStatus
from teamledger.core.security import generate_invite_token
from teamledger.models.invite import Invite
from teamledger.repositories.base import BaseRepository


class InviteRepository(BaseRepository[Invite]):
    """Repository for Invite operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Invite, session)
    
    async def create_invite(
        self,
        business_id: uuid.UUID,
        invited_by: uuid.UUID,
        role: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        cashbook_id: Optional[uuid.UUID] = None,
        commit: bool = True
    ) -> Invite:
        """Create a pending invite with a fresh token and expiry."""
        now = datetime.utcnow()
        return await self.create({
            "business_id": business_id,
            "invited_by": invited_by,
            "role": role,
            "email": email,
            "phone": phone,
            "cashbook_id": cashbook_id,
            "token": generate_invite_token(),
            "created_at": now,
            "expires_at": now + timedelta(days=settings.INVITE_EXPIRE_DAYS)
        }, commit=commit)
    
    async def get_by_token(self, token: str) -> Optional[Invite]:
        """Get invite by token string."""
        query = select(Invite).where(Invite.token == token)
        result = await self.session.exec(query)
        return result.first()
    
    async def list_for_business(
        self, 
        business_id: uuid.UUID, 
        status: Optional[str] = None
    ) -> List[Invite]:
        """Get invites of a business, newest first."""
        query = select(Invite).where(Invite.business_id == business_id)
        if status:
            query = query.where(Invite.status == status)
        query = query.order_by(Invite.created_at.desc())
        result = await self.session.exec(query)
        return list(result.all())
    
    async def transition(
        self,
        invite_id: uuid.UUID,
        to_status: str,
        from_status: str = InviteStatus.PENDING.value,
        **values
    ) -> bool:
        """
        Move an invite from from_status to to_status.
        
        Does not commit. Returns False when the stored status is no longer
        from_status (another request resolved it first).
        """
        statement = (
            update(Invite)
            .where(Invite.id == invite_id, Invite.status == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(statement)
        return result.rowcount == 1
    
    async def mark_accepted(self, invite_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Compare-and-set pending -> accepted."""
        return await self.transition(
            invite_id,
            InviteStatus.ACCEPTED.value,
            accepted_at=datetime.utcnow(),
            accepted_by=user_id
        )
    
    async def mark_revoked(self, invite_id: uuid.UUID) -> bool:
        """Compare-and-set pending -> revoked."""
        return await self.transition(
            invite_id,
            InviteStatus.REVOKED.value,
            revoked_at=datetime.utcnow()
        )
    
    async def mark_expired(self, invite_id: uuid.UUID) -> bool:
        """Compare-and-set pending -> expired."""
        return await self.transition(invite_id, InviteStatus.EXPIRED.value)
    
    async def record_sent(self, invite: Invite, commit: bool = True) -> Invite:
        """Bump delivery counters after a notification went out."""
        invite.last_sent_at = datetime.utcnow()
        invite.send_count = (invite.send_count or 0) + 1
        self.session.add(invite)
        if commit:
            await self.session.commit()
            await self.session.refresh(invite)
        return invite
