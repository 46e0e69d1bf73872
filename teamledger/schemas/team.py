"""
Team schemas for roster and membership requests/responses.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class AddBusinessMemberRequest(BaseModel):
    """Add an existing user to a business."""
    user_id: uuid.UUID
    role: str = "Staff"  # Staff, Partner


class AddCashbookMemberRequest(BaseModel):
    """Add an existing user to a cashbook."""
    user_id: uuid.UUID


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserSummary(BaseModel):
    """Public identity of a user."""
    id: uuid.UUID
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str
    
    @classmethod
    def from_user(cls, user) -> "UserSummary":
        return cls(id=user.id, email=user.email, phone=user.phone, name=user.display_name)


class RosterEntryResponse(BaseModel):
    """One member of a business."""
    user: UserSummary
    role: str
    is_current_user: bool = False
    owned_cashbook_ids: List[uuid.UUID] = []
    member_cashbook_ids: List[uuid.UUID] = []


class RosterResponse(BaseModel):
    """Role-annotated members of a business."""
    business_id: uuid.UUID
    business_name: str
    members: List[RosterEntryResponse]
    count: int
    dropped_user_ids: List[uuid.UUID] = []


class AvailableUsersResponse(BaseModel):
    """Known users that could be added to a business or cashbook."""
    users: List[UserSummary]
    count: int


class CashbookMemberResponse(BaseModel):
    """Member of a cashbook, including its owner."""
    user: UserSummary
    is_owner: bool
    added_at: datetime


class CashbookMemberListResponse(BaseModel):
    """All members of a cashbook."""
    cashbook_id: uuid.UUID
    members: List[CashbookMemberResponse]
    count: int


class MembershipResponse(BaseModel):
    """Result of adding a member."""
    message: str
    user_id: uuid.UUID
    role: str
    added_at: datetime


class RemoveMemberResponse(BaseModel):
    """Result of removing a member."""
    message: str
    cashbook_memberships_removed: int = 0


class RolePermissionResponse(BaseModel):
    name: str
    description: str


class RoleResponse(BaseModel):
    """A role and what it allows."""
    id: str
    name: str
    description: str
    permissions: List[RolePermissionResponse]


class RoleCatalogResponse(BaseModel):
    roles: List[RoleResponse]
