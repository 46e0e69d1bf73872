"""
Invite schemas for API requests/responses.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CreateInviteRequest(BaseModel):
    """Invite someone by email or phone (exactly one)."""
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = "Staff"  # Staff, Partner
    cashbook_id: Optional[uuid.UUID] = None  # Required for Staff


class AcceptInviteRequest(BaseModel):
    """Accept an invite as the current user."""
    token: str


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class InviteResponse(BaseModel):
    """Invite details. The token is never echoed back."""
    id: uuid.UUID
    business_id: uuid.UUID
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    cashbook_id: Optional[uuid.UUID] = None
    status: str
    is_expired: bool
    invited_by: uuid.UUID
    send_count: int
    last_sent_at: Optional[datetime] = None
    created_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[uuid.UUID] = None
    
    @classmethod
    def from_invite(cls, invite) -> "InviteResponse":
        return cls(
            id=invite.id,
            business_id=invite.business_id,
            email=invite.email,
            phone=invite.phone,
            role=invite.role,
            cashbook_id=invite.cashbook_id,
            status=invite.status,
            is_expired=not invite.is_terminal and invite.is_expired(),
            invited_by=invite.invited_by,
            send_count=invite.send_count,
            last_sent_at=invite.last_sent_at,
            created_at=invite.created_at,
            expires_at=invite.expires_at,
            accepted_at=invite.accepted_at,
            accepted_by=invite.accepted_by
        )


class InviteSentResponse(BaseModel):
    """Result of creating or resending an invite."""
    message: str
    invite: InviteResponse
    notification_sent: bool


class InviteListResponse(BaseModel):
    """Invites of a business."""
    invites: List[InviteResponse]
    count: int


class InvitePreviewResponse(BaseModel):
    """What the invite landing page shows before acceptance."""
    business_id: uuid.UUID
    business_name: str
    role: str
    cashbook_id: Optional[uuid.UUID] = None
    cashbook_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    expires_at: datetime


class AcceptInviteResponse(BaseModel):
    """Result of accepting an invite."""
    message: str
    business_id: uuid.UUID
    business_name: str
    role: str
    cashbook_id: Optional[uuid.UUID] = None
