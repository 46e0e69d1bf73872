"""
Business team API routes.
Roster, availability, business-level members, invites and activity.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.database import get_session
from teamledger.services.roster_service import RosterService, sort_roster
from teamledger.services.membership_service import MembershipService
from teamledger.services.invite_service import InviteService
from teamledger.repositories.activity_repo import ActivityLogRepository
from teamledger.schemas.team import (
    AddBusinessMemberRequest,
    RosterResponse,
    RosterEntryResponse,
    UserSummary,
    AvailableUsersResponse,
    MembershipResponse,
    RemoveMemberResponse
)
from teamledger.schemas.invite import (
    CreateInviteRequest,
    InviteResponse,
    InviteSentResponse,
    InviteListResponse
)
from teamledger.schemas.common import ActivityPageResponse
from teamledger.api.deps import get_current_user
from teamledger.models.user import User

router = APIRouter(prefix="/api/businesses", tags=["team"])


@router.get("/{business_id}/roster", response_model=RosterResponse)
async def get_roster(
    business_id: uuid.UUID,
    role: Optional[str] = Query(None, pattern="^(Owner|Partner|Staff)$"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    List everyone in the business with their derived role.
    Current user first, then Owner, Partners, Staff. Narrow to one role with `role`.
    """
    roster_service = RosterService(session)
    roster = await roster_service.ensure_can_view_business(business_id, current_user.id)
    entries = sort_roster(roster.entries, current_user.id)
    if role:
        entries = [entry for entry in entries if entry.role.value == role]
    members = [
        RosterEntryResponse(
            user=UserSummary.from_user(entry.user),
            role=entry.role.value,
            is_current_user=entry.user.id == current_user.id,
            owned_cashbook_ids=entry.owned_cashbook_ids,
            member_cashbook_ids=entry.member_cashbook_ids
        )
        for entry in entries
    ]
    return RosterResponse(
        business_id=roster.business.id,
        business_name=roster.business.name,
        members=members,
        count=len(members),
        dropped_user_ids=[issue.user_id for issue in roster.inconsistencies]
    )


@router.get("/{business_id}/available", response_model=AvailableUsersResponse)
async def get_available_for_business(
    business_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Known staff that could be added at business level."""
    roster_service = RosterService(session)
    await roster_service.ensure_can_manage_business(business_id, current_user.id)
    users = await roster_service.get_available_for_business(business_id)
    return AvailableUsersResponse(users=[UserSummary.from_user(u) for u in users], count=len(users))


@router.post("/{business_id}/members", response_model=MembershipResponse)
async def add_business_member(
    business_id: uuid.UUID,
    request: AddBusinessMemberRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    Add an existing user to the business as Partner or Staff.
    Requires owner or partner role.
    """
    await RosterService(session).ensure_can_manage_business(business_id, current_user.id)
    membership = await MembershipService(session).add_to_business(
        business_id=business_id,
        user_id=request.user_id,
        role=request.role,
        actor_id=current_user.id
    )
    return MembershipResponse(
        message=f"User added to the business as {membership.role}",
        user_id=membership.user_id,
        role=membership.role,
        added_at=membership.added_at
    )


@router.delete("/{business_id}/members/{user_id}", response_model=RemoveMemberResponse)
async def remove_business_member(
    business_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    Remove a member from the business and all of its cashbooks.
    The owner and cashbook owners cannot be removed this way.
    """
    await RosterService(session).ensure_can_manage_business(business_id, current_user.id)
    removed_books = await MembershipService(session).remove_from_business(
        business_id=business_id,
        user_id=user_id,
        actor_id=current_user.id
    )
    return RemoveMemberResponse(
        message="Member removed from the business",
        cashbook_memberships_removed=removed_books
    )


@router.post("/{business_id}/invites", response_model=InviteSentResponse)
async def create_invite(
    business_id: uuid.UUID,
    request: CreateInviteRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    Invite someone by email or phone.
    Staff invites must name a cashbook of this business.
    """
    await RosterService(session).ensure_can_manage_business(business_id, current_user.id)
    result = await InviteService(session).create_invite(
        business_id=business_id,
        invited_by=current_user.id,
        role=request.role,
        email=request.email,
        phone=request.phone,
        cashbook_id=request.cashbook_id
    )
    return InviteSentResponse(
        message=result["message"],
        invite=InviteResponse.from_invite(result["invite"]),
        notification_sent=result["notification_sent"]
    )


@router.get("/{business_id}/invites", response_model=InviteListResponse)
async def list_invites(
    business_id: uuid.UUID,
    status: Optional[str] = Query(None, pattern="^(pending|accepted|expired|revoked)$"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List invites of the business, newest first."""
    await RosterService(session).ensure_can_manage_business(business_id, current_user.id)
    invites = await InviteService(session).list_invites(business_id, status)
    return InviteListResponse(
        invites=[InviteResponse.from_invite(invite) for invite in invites],
        count=len(invites)
    )


@router.get("/{business_id}/activity", response_model=ActivityPageResponse)
async def get_activity(
    business_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Team change history of the business."""
    await RosterService(session).ensure_can_manage_business(business_id, current_user.id)
    return await ActivityLogRepository(session).get_feed(business_id, page=page, limit=limit)
