"""
Cashbook member API routes.
"""
import uuid

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.database import get_session
from teamledger.services.roster_service import RosterService
from teamledger.services.membership_service import MembershipService
from teamledger.schemas.team import (
    AddCashbookMemberRequest,
    AvailableUsersResponse,
    CashbookMemberResponse,
    CashbookMemberListResponse,
    MembershipResponse,
    UserSummary
)
from teamledger.schemas.common import MessageResponse
from teamledger.api.deps import get_current_user
from teamledger.models.user import User

router = APIRouter(prefix="/api/cashbooks", tags=["cashbooks"])


@router.get("/{cashbook_id}/members", response_model=CashbookMemberListResponse)
async def list_cashbook_members(
    cashbook_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List the owner and members of a cashbook."""
    roster_service = RosterService(session)
    await roster_service.ensure_can_manage_cashbook(cashbook_id, current_user.id)
    members = await roster_service.get_cashbook_members(cashbook_id)
    return CashbookMemberListResponse(
        cashbook_id=cashbook_id,
        members=[
            CashbookMemberResponse(
                user=UserSummary.from_user(member["user"]),
                is_owner=member["is_owner"],
                added_at=member["added_at"]
            )
            for member in members
        ],
        count=len(members)
    )


@router.get("/{cashbook_id}/available", response_model=AvailableUsersResponse)
async def get_available_for_cashbook(
    cashbook_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Staff of the business who are not yet in this cashbook."""
    roster_service = RosterService(session)
    await roster_service.ensure_can_manage_cashbook(cashbook_id, current_user.id)
    users = await roster_service.get_available_for_cashbook(cashbook_id)
    return AvailableUsersResponse(users=[UserSummary.from_user(u) for u in users], count=len(users))


@router.post("/{cashbook_id}/members", response_model=MembershipResponse)
async def add_cashbook_member(
    cashbook_id: uuid.UUID,
    request: AddCashbookMemberRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Give an existing user access to the cashbook."""
    await RosterService(session).ensure_can_manage_cashbook(cashbook_id, current_user.id)
    membership = await MembershipService(session).add_to_cashbook(
        cashbook_id=cashbook_id,
        user_id=request.user_id,
        actor_id=current_user.id
    )
    return MembershipResponse(
        message="Member added to the cashbook",
        user_id=membership.user_id,
        role="Staff",
        added_at=membership.added_at
    )


@router.delete("/{cashbook_id}/members/{user_id}", response_model=MessageResponse)
async def remove_cashbook_member(
    cashbook_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    Remove a member from the cashbook.
    The cashbook owner cannot be removed.
    """
    await RosterService(session).ensure_can_manage_cashbook(cashbook_id, current_user.id)
    await MembershipService(session).remove_from_cashbook(
        cashbook_id=cashbook_id,
        user_id=user_id,
        actor_id=current_user.id
    )
    return {"message": "Member removed from the cashbook"}
