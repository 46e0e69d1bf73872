"""
Activity log model - audit trail for team changes.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from sqlalchemy.dialects.postgresql import JSONB


class ActivityLog(SQLModel, table=True):
    """
    One row per team mutation.
    Written in the same transaction as the change it describes.
    """
    __tablename__ = "activity_log"
    
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    business_id: Optional[uuid.UUID] = Field(default=None, foreign_key="business.id", index=True)
    actor_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)
    
    # Action details
    action: str = Field(index=True)
    entity_type: str = Field(index=True)  # invite, cashbook_member, business_member
    entity_id: Optional[uuid.UUID] = None
    
    # Human-readable description
    description: Optional[str] = None
    
    # Additional metadata
    meta_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON().with_variant(JSONB, "postgresql"))
    )
    # Example: {"role": "Staff", "cashbook_id": "..."}
    
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Action constants for consistency
class Actions:
    # Invite actions
    INVITE_CREATED = "invite_created"
    INVITE_RESENT = "invite_resent"
    INVITE_REVOKED = "invite_revoked"
    INVITE_ACCEPTED = "invite_accepted"
    INVITE_EXPIRED = "invite_expired"
    
    # Membership actions
    CASHBOOK_MEMBER_ADDED = "cashbook_member_added"
    CASHBOOK_MEMBER_REMOVED = "cashbook_member_removed"
    BUSINESS_MEMBER_ADDED = "business_member_added"
    BUSINESS_MEMBER_REMOVED = "business_member_removed"
