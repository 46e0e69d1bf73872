"""
User model.
Owned by the auth service; the team core only reads it.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    User identity and profile info.
    A user reaches a business as its owner, as a cashbook owner (Partner)
    or as a cashbook/business member.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    
    # Identity (either may be missing for phone-only or email-only accounts)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    phone: Optional[str] = Field(default=None, index=True)
    
    # Profile
    full_name: Optional[str] = None
    is_active: bool = Field(default=True)
    
    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    
    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@")[0]
        return self.phone or "Unknown"
