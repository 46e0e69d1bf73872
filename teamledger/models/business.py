"""
Business, Cashbook and membership models.
A business owns cashbooks; a cashbook owns its member rows.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class Business(SQLModel, table=True):
    """
    Top-level tenant.
    owner_id is fixed for the lifetime of the business.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    
    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Cashbook(SQLModel, table=True):
    """
    A ledger with its own owner.
    When the owner differs from the business owner, that user is a Partner.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    business_id: Optional[uuid.UUID] = Field(default=None, foreign_key="business.id", index=True)
    
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CashbookMember(SQLModel, table=True):
    """
    Staff-level access to a single cashbook.
    The cashbook owner never has a row here.
    """
    __tablename__ = "cashbook_member"
    __table_args__ = (
        UniqueConstraint("cashbook_id", "user_id", name="uq_cashbook_member"),
    )
    
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cashbook_id: uuid.UUID = Field(foreign_key="cashbook.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    
    added_at: datetime = Field(default_factory=datetime.utcnow)
    added_by: Optional[uuid.UUID] = None  # User who added or invited them


class BusinessMember(SQLModel, table=True):
    """
    Business-level association (Partner or Staff) not tied to one cashbook.
    The business owner never has a row here.
    """
    __tablename__ = "business_member"
    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_member"),
    )
    
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    business_id: uuid.UUID = Field(foreign_key="business.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    role: str = Field(default="Staff")  # Partner, Staff
    
    added_at: datetime = Field(default_factory=datetime.utcnow)
    added_by: Optional[uuid.UUID] = None
