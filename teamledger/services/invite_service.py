"""
Invite service - creates, resends, revokes and resolves team invitations.

State machine: pending -> accepted | expired | revoked, all three terminal.
Expiry is detected lazily when someone touches the invite; there is no
background sweep. Accepting an invite flips its status and creates the
membership in one transaction.
"""
import logging
import uuid
from typing import Optional, List

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.core.exceptions import (
    NotFoundError,
    InvalidTargetError,
    CashbookRequiredError,
    InvalidRoleError,
    NotPendingError,
    InviteExpiredError,
    InvalidInviteTokenError,
    AlreadyResolvedError,
    AlreadyMemberError,
    IsOwnerError,
    TeamLedgerException
)
from teamledger.core.roles import Role, GRANTABLE_ROLES
from teamledger.models.activity import Actions
from teamledger.models.business import Business
from teamledger.models.invite import Invite
from teamledger.repositories.activity_repo import ActivityLogRepository
from teamledger.repositories.business_repo import (
    BusinessRepository,
    CashbookRepository,
    BusinessMemberRepository
)
from teamledger.repositories.invite_repo import InviteRepository
from teamledger.repositories.user_repo import UserRepository
from teamledger.services.membership_service import MembershipService
from teamledger.services.notification_service import InviteNotifier, build_invite_link

logger = logging.getLogger(__name__)


def normalize_target(email: Optional[str], phone: Optional[str]) -> tuple:
    """
    Clean an invite target. Exactly one of email/phone must remain.
    Emails are lower-cased; blank strings count as missing.
    """
    email = (email or "").strip().lower() or None
    phone = (phone or "").strip().replace(" ", "") or None
    if (email is None) == (phone is None):
        raise InvalidTargetError()
    if email is not None and "@" not in email:
        raise InvalidTargetError(f"'{email}' is not a valid email address")
    return email, phone


class InviteService:
    """Service for the invitation lifecycle."""

    def __init__(self, session: AsyncSession, notifier: Optional[InviteNotifier] = None):
        self.session = session
        self.invite_repo = InviteRepository(session)
        self.business_repo = BusinessRepository(session)
        self.cashbook_repo = CashbookRepository(session)
        self.business_member_repo = BusinessMemberRepository(session)
        self.user_repo = UserRepository(session)
        self.activity_repo = ActivityLogRepository(session)
        self.membership = MembershipService(session)
        self._notifier = notifier

    @property
    def notifier(self) -> InviteNotifier:
        if self._notifier is None:
            self._notifier = InviteNotifier()
        return self._notifier

    # =========================================================================
    # CREATE / RESEND / REVOKE
    # =========================================================================

    async def create_invite(
        self,
        business_id: uuid.UUID,
        invited_by: uuid.UUID,
        role: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        cashbook_id: Optional[uuid.UUID] = None
    ) -> dict:
        """
        Create a pending invite and send it.

        Staff invites must name a cashbook of the same business; Partner
        invites ignore cashbook_id. Several pending invites may target the
        same email or phone.

        Returns:
            dict with the invite, its link and whether delivery succeeded
        """
        email, phone = normalize_target(email, phone)
        if role not in GRANTABLE_ROLES:
            raise InvalidRoleError(role, list(GRANTABLE_ROLES))

        business = await self._get_business(business_id)

        if role == Role.STAFF:
            if cashbook_id is None:
                raise CashbookRequiredError()
            cashbook = await self.cashbook_repo.get(cashbook_id)
            if cashbook is None or cashbook.business_id != business.id:
                raise CashbookRequiredError()
        else:
            cashbook_id = None

        invite = await self.invite_repo.create_invite(
            business_id=business.id,
            invited_by=invited_by,
            role=role,
            email=email,
            phone=phone,
            cashbook_id=cashbook_id,
            commit=False
        )
        await self._log(invite, Actions.INVITE_CREATED, invited_by, f"Invited {invite.target} as {role}")
        await self.session.commit()
        await self.session.refresh(invite)
        logger.info(f"Invite {invite.id} created for {invite.target} to business {business.id} as {role}")

        sent = await self._dispatch(invite, business, invited_by)
        return {
            "invite": invite,
            "invite_link": build_invite_link(invite),
            "notification_sent": sent,
            "message": f"Invite sent to {invite.target}" if sent
                       else f"Invite created for {invite.target} but could not be delivered"
        }

    async def resend_invite(self, invite_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> dict:
        """
        Send the same invite again. Token and expiry do not change, so
        resending never creates a second acceptable invite.
        """
        invite = await self._get_invite(invite_id)
        if invite.is_terminal:
            raise NotPendingError(invite.status)
        if invite.is_expired():
            await self._expire(invite, actor_id)
            raise InviteExpiredError("This invite has expired. Create a new invite instead")

        business = await self._get_business(invite.business_id)
        sent = await self._dispatch(invite, business, actor_id)
        await self._log(invite, Actions.INVITE_RESENT, actor_id, f"Resent invite to {invite.target}")
        await self.session.commit()
        await self.session.refresh(invite)
        logger.info(f"Invite {invite.id} resent to {invite.target} (sent={sent})")

        return {
            "invite": invite,
            "invite_link": build_invite_link(invite),
            "notification_sent": sent,
            "message": f"Invite resent to {invite.target}" if sent
                       else f"Invite to {invite.target} could not be delivered"
        }

    async def revoke_invite(self, invite_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> Invite:
        """Withdraw a pending invite. Its token never resolves again."""
        invite = await self._get_invite(invite_id)
        if invite.is_terminal:
            raise NotPendingError(invite.status)

        if not await self.invite_repo.mark_revoked(invite.id):
            # Resolved by a concurrent request since we read it
            await self.session.rollback()
            await self.session.refresh(invite)
            raise NotPendingError(invite.status)

        await self._log(invite, Actions.INVITE_REVOKED, actor_id, f"Revoked invite to {invite.target}")
        await self.session.commit()
        await self.session.refresh(invite)
        logger.info(f"Invite {invite.id} revoked")
        return invite

    # Deleting an invite keeps the row for the audit trail
    delete_invite = revoke_invite

    # =========================================================================
    # RESOLVE
    # =========================================================================

    async def verify_invite(self, token: str) -> dict:
        """Preview an invite for the landing page without accepting it."""
        invite = await self._get_live_invite(token)
        business = await self._get_business(invite.business_id)
        cashbook = await self.cashbook_repo.get(invite.cashbook_id) if invite.cashbook_id else None
        return {
            "invite": invite,
            "business_name": business.name,
            "cashbook_name": cashbook.name if cashbook else None
        }

    async def accept_invite(self, token: str, user_id: uuid.UUID) -> dict:
        """
        Accept an invite on behalf of user_id.

        The pending -> accepted flip is a compare-and-set, so of two racing
        accepts exactly one wins; the loser sees AlreadyResolved. The flip
        and the membership it grants are committed together or not at all.
        """
        invite = await self._get_live_invite(token)
        business = await self._get_business(invite.business_id)
        if not await self.user_repo.get(user_id):
            raise NotFoundError("User", str(user_id))
        if user_id == business.owner_id:
            raise IsOwnerError("business")

        invite_id = invite.id
        scope = "cashbook" if invite.role == Role.STAFF else "business"
        try:
            if not await self.invite_repo.mark_accepted(invite_id, user_id):
                raise AlreadyResolvedError()
            membership = await self._materialize(invite, business, user_id)
            await self._log(
                invite, Actions.INVITE_ACCEPTED, user_id,
                f"{invite.target} joined as {invite.role}",
                extra={"accepted_by": str(user_id)}
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyMemberError(scope)
        except TeamLedgerException:
            await self.session.rollback()
            raise

        invite = await self.invite_repo.get(invite_id)
        await self.session.refresh(invite)
        logger.info(f"Invite {invite_id} accepted by {user_id}")
        return {
            "invite": invite,
            "business_name": business.name,
            "membership": membership,
            "message": f"You have joined {business.name} as {invite.role}"
        }

    async def list_invites(self, business_id: uuid.UUID, status: Optional[str] = None) -> List[Invite]:
        """Invites of a business, optionally filtered by stored status."""
        await self._get_business(business_id)
        return await self.invite_repo.list_for_business(business_id, status)

    # =========================================================================

    async def _materialize(self, invite: Invite, business: Business, user_id: uuid.UUID):
        """Stage the membership an accepted invite grants. Does not commit."""
        if invite.role == Role.STAFF:
            cashbook = await self.cashbook_repo.get(invite.cashbook_id) if invite.cashbook_id else None
            if cashbook is None:
                raise NotFoundError("Cashbook", str(invite.cashbook_id) if invite.cashbook_id else None)
            return await self.membership.stage_cashbook_member(cashbook, user_id, added_by=invite.invited_by)

        existing = await self.business_member_repo.get_membership(business.id, user_id)
        if existing is not None and existing.role == Role.STAFF:
            # Promote instead of adding a second association
            existing.role = Role.PARTNER.value
            self.session.add(existing)
            await self.session.flush()
            return existing
        return await self.membership.stage_business_member(
            business, user_id, Role.PARTNER.value, added_by=invite.invited_by
        )

    async def _get_live_invite(self, token: str) -> Invite:
        """Invite for token that is still pending and unexpired."""
        invite = await self.invite_repo.get_by_token(token) if token else None
        if invite is None:
            raise InvalidInviteTokenError()
        if invite.is_terminal:
            raise AlreadyResolvedError(invite.status)
        if invite.is_expired():
            await self._expire(invite)
            raise InviteExpiredError()
        return invite

    async def _expire(self, invite: Invite, actor_id: Optional[uuid.UUID] = None) -> None:
        """Record that a pending invite ran out (lazy expiry)."""
        if await self.invite_repo.mark_expired(invite.id):
            await self._log(invite, Actions.INVITE_EXPIRED, actor_id, f"Invite to {invite.target} expired")
            await self.session.commit()
            await self.session.refresh(invite)
            logger.info(f"Invite {invite.id} expired")
        else:
            await self.session.rollback()

    async def _dispatch(self, invite: Invite, business: Business, actor_id: Optional[uuid.UUID]) -> bool:
        inviter = await self.user_repo.get(actor_id or invite.invited_by)
        sent = await self.notifier.send_invite(invite, business, inviter)
        if sent:
            await self.invite_repo.record_sent(invite)
        return sent

    async def _log(
        self,
        invite: Invite,
        action: str,
        actor_id: Optional[uuid.UUID],
        description: str,
        extra: Optional[dict] = None
    ) -> None:
        meta = {
            "role": invite.role,
            "target": invite.target,
            "cashbook_id": str(invite.cashbook_id) if invite.cashbook_id else None
        }
        meta.update(extra or {})
        await self.activity_repo.log(
            business_id=invite.business_id,
            actor_id=actor_id,
            action=action,
            entity_type="invite",
            entity_id=invite.id,
            description=description,
            meta_data=meta,
            commit=False
        )

    async def _get_business(self, business_id: uuid.UUID) -> Business:
        business = await self.business_repo.get(business_id)
        if not business:
            raise NotFoundError("Business", str(business_id))
        return business

    async def _get_invite(self, invite_id: uuid.UUID) -> Invite:
        invite = await self.invite_repo.get(invite_id)
        if not invite:
            raise NotFoundError("Invite", str(invite_id))
        return invite
