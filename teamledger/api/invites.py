"""
Invite API routes.
Resend and revoke by id; verify and accept by token.
"""
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.database import get_session
from teamledger.core.exceptions import NotFoundError
from teamledger.services.invite_service import InviteService
from teamledger.services.roster_service import RosterService
from teamledger.repositories.invite_repo import InviteRepository
from teamledger.schemas.invite import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    InvitePreviewResponse,
    InviteResponse,
    InviteSentResponse
)
from teamledger.api.deps import get_current_user
from teamledger.models.user import User

router = APIRouter(prefix="/api/invites", tags=["invites"])


async def _ensure_can_manage_invite(session: AsyncSession, invite_id: uuid.UUID, user: User) -> None:
    invite = await InviteRepository(session).get(invite_id)
    if not invite:
        raise NotFoundError("Invite", str(invite_id))
    await RosterService(session).ensure_can_manage_business(invite.business_id, user.id)


@router.get("/verify", response_model=InvitePreviewResponse)
async def verify_invite(
    token: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session)
):
    """
    Preview an invite from its link.
    No authentication: the invitee may not have an account yet.
    """
    result = await InviteService(session).verify_invite(token)
    invite = result["invite"]
    return InvitePreviewResponse(
        business_id=invite.business_id,
        business_name=result["business_name"],
        role=invite.role,
        cashbook_id=invite.cashbook_id,
        cashbook_name=result["cashbook_name"],
        email=invite.email,
        phone=invite.phone,
        expires_at=invite.expires_at
    )


@router.post("/accept", response_model=AcceptInviteResponse)
async def accept_invite(
    request: AcceptInviteRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Accept an invite and join the business as the current user."""
    result = await InviteService(session).accept_invite(request.token, current_user.id)
    invite = result["invite"]
    return AcceptInviteResponse(
        message=result["message"],
        business_id=invite.business_id,
        business_name=result["business_name"],
        role=invite.role,
        cashbook_id=invite.cashbook_id
    )


@router.post("/{invite_id}/resend", response_model=InviteSentResponse)
async def resend_invite(
    invite_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Send a pending invite again with the same link."""
    await _ensure_can_manage_invite(session, invite_id, current_user)
    result = await InviteService(session).resend_invite(invite_id, actor_id=current_user.id)
    return InviteSentResponse(
        message=result["message"],
        invite=InviteResponse.from_invite(result["invite"]),
        notification_sent=result["notification_sent"]
    )


@router.delete("/{invite_id}", response_model=InviteResponse)
async def delete_invite(
    invite_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Revoke a pending invite."""
    await _ensure_can_manage_invite(session, invite_id, current_user)
    invite = await InviteService(session).delete_invite(invite_id, actor_id=current_user.id)
    return InviteResponse.from_invite(invite)
