"""
Membership service - adds and removes users at cashbook and business level.

Owners are never stored as members and never removed through here.
Duplicate adds are stopped by the unique constraints on the junction
tables, not only by the existence check in front of them.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.core.exceptions import (
    NotFoundError,
    AlreadyMemberError,
    NotMemberError,
    IsOwnerError,
    InvalidRoleError
)
from teamledger.core.roles import GRANTABLE_ROLES
from teamledger.models.activity import Actions
from teamledger.models.business import Business, Cashbook, CashbookMember, BusinessMember
from teamledger.repositories.activity_repo import ActivityLogRepository
from teamledger.repositories.business_repo import (
    BusinessRepository,
    CashbookRepository,
    CashbookMemberRepository,
    BusinessMemberRepository
)
from teamledger.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class MembershipService:
    """Service for cashbook and business membership changes."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.business_repo = BusinessRepository(session)
        self.cashbook_repo = CashbookRepository(session)
        self.cashbook_member_repo = CashbookMemberRepository(session)
        self.business_member_repo = BusinessMemberRepository(session)
        self.activity_repo = ActivityLogRepository(session)

    # =========================================================================
    # CASHBOOK LEVEL
    # =========================================================================

    async def add_to_cashbook(
        self,
        cashbook_id: uuid.UUID,
        user_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None
    ) -> CashbookMember:
        """Give a user Staff access to one cashbook."""
        cashbook = await self._get_cashbook(cashbook_id)
        await self._ensure_user(user_id)

        try:
            membership = await self.stage_cashbook_member(cashbook, user_id, added_by=actor_id)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyMemberError("cashbook")

        await self.session.refresh(membership)
        logger.info(f"User {user_id} added to cashbook {cashbook_id}")
        return membership

    async def remove_from_cashbook(
        self,
        cashbook_id: uuid.UUID,
        user_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None
    ) -> None:
        """Revoke a user's access to one cashbook."""
        cashbook = await self._get_cashbook(cashbook_id)
        if user_id == cashbook.owner_id:
            raise IsOwnerError("cashbook")

        removed = await self.cashbook_member_repo.remove_member(cashbook.id, user_id, commit=False)
        if not removed:
            raise NotMemberError("cashbook")

        await self.activity_repo.log(
            business_id=cashbook.business_id,
            actor_id=actor_id,
            action=Actions.CASHBOOK_MEMBER_REMOVED,
            entity_type="cashbook_member",
            entity_id=cashbook.id,
            description=f"Removed from cashbook {cashbook.name}",
            meta_data={"cashbook_id": str(cashbook.id), "user_id": str(user_id)},
            commit=False
        )
        await self.session.commit()
        logger.info(f"User {user_id} removed from cashbook {cashbook_id}")

    async def stage_cashbook_member(
        self,
        cashbook: Cashbook,
        user_id: uuid.UUID,
        added_by: Optional[uuid.UUID] = None
    ) -> CashbookMember:
        """
        Insert the membership row and its activity entry without committing.
        Raises IntegrityError on flush if a concurrent request inserted the
        same pair first.
        """
        if user_id == cashbook.owner_id:
            raise IsOwnerError("cashbook")
        if await self.cashbook_member_repo.get_membership(cashbook.id, user_id):
            raise AlreadyMemberError("cashbook")

        membership = await self.cashbook_member_repo.add_member(
            cashbook.id, user_id, added_by=added_by, commit=False
        )
        await self.activity_repo.log(
            business_id=cashbook.business_id,
            actor_id=added_by,
            action=Actions.CASHBOOK_MEMBER_ADDED,
            entity_type="cashbook_member",
            entity_id=membership.id,
            description=f"Added to cashbook {cashbook.name}",
            meta_data={"cashbook_id": str(cashbook.id), "user_id": str(user_id)},
            commit=False
        )
        return membership

    # =========================================================================
    # BUSINESS LEVEL
    # =========================================================================

    async def add_to_business(
        self,
        business_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
        actor_id: Optional[uuid.UUID] = None
    ) -> BusinessMember:
        """Associate a user with a business as Partner or Staff."""
        if role not in GRANTABLE_ROLES:
            raise InvalidRoleError(role, list(GRANTABLE_ROLES))
        business = await self._get_business(business_id)
        await self._ensure_user(user_id)

        try:
            membership = await self.stage_business_member(business, user_id, role, added_by=actor_id)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyMemberError("business")

        await self.session.refresh(membership)
        logger.info(f"User {user_id} added to business {business_id} as {role}")
        return membership

    async def remove_from_business(
        self,
        business_id: uuid.UUID,
        user_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None
    ) -> int:
        """
        Remove a user from a business and from every cashbook of it.
        Returns the number of cashbook memberships removed along the way.
        """
        business = await self._get_business(business_id)
        if user_id == business.owner_id:
            raise IsOwnerError("business")
        if await self.cashbook_repo.list_owned_in_business(business.id, user_id):
            # Ownership goes away only by deleting or transferring the cashbook
            raise IsOwnerError("cashbook")

        cashbooks = await self.cashbook_repo.list_for_business(business.id)
        removed_business = await self.business_member_repo.remove_member(
            business.id, user_id, commit=False
        )
        removed_books = await self.cashbook_member_repo.remove_user_from_cashbooks(
            user_id, [cashbook.id for cashbook in cashbooks], commit=False
        )
        if not removed_business and not removed_books:
            raise NotMemberError("business")

        await self.activity_repo.log(
            business_id=business.id,
            actor_id=actor_id,
            action=Actions.BUSINESS_MEMBER_REMOVED,
            entity_type="business_member",
            entity_id=user_id,
            description=f"Removed from {business.name}",
            meta_data={"user_id": str(user_id), "cashbook_memberships_removed": removed_books},
            commit=False
        )
        await self.session.commit()
        logger.info(
            f"User {user_id} removed from business {business_id} "
            f"({removed_books} cashbook memberships)"
        )
        return removed_books

    async def stage_business_member(
        self,
        business: Business,
        user_id: uuid.UUID,
        role: str,
        added_by: Optional[uuid.UUID] = None
    ) -> BusinessMember:
        """Insert the business-level row and its activity entry without committing."""
        if user_id == business.owner_id:
            raise IsOwnerError("business")
        if await self.business_member_repo.get_membership(business.id, user_id):
            raise AlreadyMemberError("business")

        membership = await self.business_member_repo.add_member(
            business.id, user_id, role, added_by=added_by, commit=False
        )
        await self.activity_repo.log(
            business_id=business.id,
            actor_id=added_by,
            action=Actions.BUSINESS_MEMBER_ADDED,
            entity_type="business_member",
            entity_id=membership.id,
            description=f"Added to {business.name} as {role}",
            meta_data={"user_id": str(user_id), "role": role},
            commit=False
        )
        return membership

    # =========================================================================

    async def _get_business(self, business_id: uuid.UUID) -> Business:
        business = await self.business_repo.get(business_id)
        if not business:
            raise NotFoundError("Business", str(business_id))
        return business

    async def _get_cashbook(self, cashbook_id: uuid.UUID) -> Cashbook:
        cashbook = await self.cashbook_repo.get(cashbook_id)
        if not cashbook:
            raise NotFoundError("Cashbook", str(cashbook_id))
        return cashbook

    async def _ensure_user(self, user_id: uuid.UUID) -> None:
        if not await self.user_repo.get(user_id):
            raise NotFoundError("User", str(user_id))
