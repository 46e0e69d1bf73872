"""
Invite model.
Single-use offer of business or cashbook access, resolved by token.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from teamledger.core.roles import InviteStatus, TERMINAL_STATUSES


class Invite(SQLModel, table=True):
    """
    Invitation sent to an email address or a phone number.
    Only the invite service changes it; accepted, expired and revoked
    are terminal.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    business_id: uuid.UUID = Field(foreign_key="business.id", index=True)
    
    # Target (exactly one is set)
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = Field(default=None, index=True)
    
    # What the invitee gets
    role: str = Field(default="Staff")  # Staff, Partner
    cashbook_id: Optional[uuid.UUID] = Field(default=None, foreign_key="cashbook.id")
    
    # State
    status: str = Field(default=InviteStatus.PENDING.value, index=True)
    token: str = Field(unique=True, index=True)
    invited_by: uuid.UUID = Field(foreign_key="user.id")
    
    # Delivery
    last_sent_at: Optional[datetime] = None
    send_count: int = Field(default=0)
    
    # Resolution
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[uuid.UUID] = None
    revoked_at: Optional[datetime] = None
    
    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime
    
    @property
    def target(self) -> str:
        return self.email or self.phone
    
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
    
    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Past expires_at by wall clock, whatever the stored status says."""
        return (now or datetime.utcnow()) >= self.expires_at
