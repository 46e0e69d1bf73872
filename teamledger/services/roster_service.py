"""
Roster service - who belongs to a business and in what role.

The aggregation and availability rules are plain functions over explicit
inputs; RosterService only loads those inputs from the store.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Set, Iterable, Mapping, Sequence

from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.core.exceptions import NotFoundError, ForbiddenError, DataConsistencyError
from teamledger.core.roles import Role, ROLE_PRECEDENCE, classify
from teamledger.models.business import Business, Cashbook, BusinessMember
from teamledger.models.user import User
from teamledger.repositories.business_repo import (
    BusinessRepository,
    CashbookRepository,
    CashbookMemberRepository,
    BusinessMemberRepository
)
from teamledger.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class RosterEntry:
    user: User
    role: Role
    owned_cashbook_ids: List[uuid.UUID] = field(default_factory=list)
    member_cashbook_ids: List[uuid.UUID] = field(default_factory=list)


@dataclass
class Roster:
    """Role-annotated members of one business, at most one entry per user."""
    business: Business
    entries: List[RosterEntry] = field(default_factory=list)
    inconsistencies: List[DataConsistencyError] = field(default_factory=list)
    business_member_ids: Set[uuid.UUID] = field(default_factory=set)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    @property
    def user_ids(self) -> Set[uuid.UUID]:
        return {entry.user.id for entry in self.entries}

    def ids_with_role(self, role: Role) -> Set[uuid.UUID]:
        return {entry.user.id for entry in self.entries if entry.role == role}

    def role_of(self, user_id: uuid.UUID) -> Optional[Role]:
        for entry in self.entries:
            if entry.user.id == user_id:
                return entry.role
        return None


# =============================================================================
# AGGREGATION
# =============================================================================

def aggregate(
    business: Business,
    cashbooks: Sequence[Cashbook],
    cashbook_members_by_book: Mapping[uuid.UUID, Set[uuid.UUID]],
    all_users: Iterable[User],
    business_members: Sequence[BusinessMember] = ()
) -> Roster:
    """
    Build the roster of a business.

    Partners are owners of a cashbook in the business (other than the
    business owner) plus business-level Partner rows. Staff are cashbook
    members plus business-level Staff rows, minus anyone already Owner or
    Partner. Ids without a user record are dropped and reported on
    ``Roster.inconsistencies``.
    """
    owner_id = business.owner_id

    cashbook_owner_ids: Set[uuid.UUID] = {
        cashbook.owner_id for cashbook in cashbooks if cashbook.owner_id != owner_id
    }
    cashbook_owner_ids |= {
        row.user_id for row in business_members
        if row.role == Role.PARTNER and row.user_id != owner_id
    }

    member_union: Set[uuid.UUID] = set()
    for cashbook in cashbooks:
        member_union |= cashbook_members_by_book.get(cashbook.id, set())
    member_union |= {row.user_id for row in business_members if row.role == Role.STAFF}
    cashbook_member_ids = member_union - cashbook_owner_ids - {owner_id}

    candidate_ids = {owner_id} | cashbook_owner_ids | cashbook_member_ids
    users_by_id: Dict[uuid.UUID, User] = {
        user.id: user for user in all_users if user.id in candidate_ids
    }

    owned: Dict[uuid.UUID, List[uuid.UUID]] = {}
    member_of: Dict[uuid.UUID, List[uuid.UUID]] = {}
    for cashbook in cashbooks:
        owned.setdefault(cashbook.owner_id, []).append(cashbook.id)
        for user_id in cashbook_members_by_book.get(cashbook.id, set()):
            member_of.setdefault(user_id, []).append(cashbook.id)

    roster = Roster(
        business=business,
        business_member_ids={row.user_id for row in business_members}
    )
    for user_id in candidate_ids:
        user = users_by_id.get(user_id)
        if user is None:
            issue = DataConsistencyError(user_id, business.id)
            logger.warning(f"Dropping roster entry: {issue.message}")
            roster.inconsistencies.append(issue)
            continue

        role = classify(user_id, owner_id, cashbook_owner_ids, cashbook_member_ids)
        roster.entries.append(RosterEntry(
            user=user,
            role=role,
            owned_cashbook_ids=owned.get(user_id, []),
            member_cashbook_ids=member_of.get(user_id, [])
        ))

    return roster


def sort_roster(
    entries: Iterable[RosterEntry],
    current_user_id: Optional[uuid.UUID] = None
) -> List[RosterEntry]:
    """Presentation order: current user, then Owner, Partner, Staff, then name."""
    return sorted(
        entries,
        key=lambda entry: (
            entry.user.id != current_user_id,
            ROLE_PRECEDENCE[entry.role],
            entry.user.display_name.lower()
        )
    )


# =============================================================================
# AVAILABILITY
# =============================================================================

def available_for_cashbook(
    cashbook: Cashbook,
    current_members: Set[uuid.UUID],
    business_staff_pool: Set[uuid.UUID],
    business_owner_id: uuid.UUID
) -> List[uuid.UUID]:
    """
    Staff of the business who could be added to this cashbook.
    Never includes current members, the cashbook owner or the business owner.
    """
    excluded = set(current_members) | {cashbook.owner_id, business_owner_id}
    return sorted((uid for uid in business_staff_pool if uid not in excluded), key=str)


def available_for_business(
    roster: Iterable[RosterEntry],
    business_staff_pool: Set[uuid.UUID]
) -> List[uuid.UUID]:
    """Users of the pool who are not on the roster in any role."""
    present = {entry.user.id for entry in roster}
    return sorted((uid for uid in business_staff_pool if uid not in present), key=str)


# =============================================================================
# SERVICE
# =============================================================================

class RosterService:
    """Loads business membership from the store and runs the roster rules."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.business_repo = BusinessRepository(session)
        self.cashbook_repo = CashbookRepository(session)
        self.cashbook_member_repo = CashbookMemberRepository(session)
        self.business_member_repo = BusinessMemberRepository(session)
        self.user_repo = UserRepository(session)

    async def get_business(self, business_id: uuid.UUID) -> Business:
        business = await self.business_repo.get(business_id)
        if not business:
            raise NotFoundError("Business", str(business_id))
        return business

    async def get_cashbook(self, cashbook_id: uuid.UUID) -> Cashbook:
        cashbook = await self.cashbook_repo.get(cashbook_id)
        if not cashbook:
            raise NotFoundError("Cashbook", str(cashbook_id))
        return cashbook

    async def get_roster(self, business_id: uuid.UUID) -> Roster:
        """Current roster of a business."""
        business = await self.get_business(business_id)
        return await self._build_roster(business)

    async def get_available_for_business(self, business_id: uuid.UUID) -> List[User]:
        """
        Staff reached only through cashbook membership, who could be added
        to the business team itself.
        """
        roster = await self.get_roster(business_id)
        team = [
            entry for entry in roster
            if entry.role != Role.STAFF or entry.user.id in roster.business_member_ids
        ]
        pool = roster.ids_with_role(Role.STAFF)
        return await self._users_in_order(available_for_business(team, pool))

    async def get_available_for_cashbook(self, cashbook_id: uuid.UUID) -> List[User]:
        """
        Known staff of the cashbook's business who could be added to it.
        A cashbook outside any business has nobody to offer.
        """
        cashbook = await self.get_cashbook(cashbook_id)
        if cashbook.business_id is None:
            return []

        roster = await self.get_roster(cashbook.business_id)
        current_members = await self.cashbook_member_repo.get_member_ids(cashbook.id)
        available = available_for_cashbook(
            cashbook,
            current_members,
            roster.ids_with_role(Role.STAFF),
            business_owner_id=roster.business.owner_id
        )
        return await self._users_in_order(available)

    async def get_cashbook_members(self, cashbook_id: uuid.UUID) -> List[dict]:
        """Owner first, then member rows in the order they were added."""
        cashbook = await self.get_cashbook(cashbook_id)
        rows = await self.cashbook_member_repo.list_for_cashbook(cashbook.id)
        users = await self.user_repo.get_many([cashbook.owner_id] + [row.user_id for row in rows])
        users_by_id = {user.id: user for user in users}

        members = []
        owner = users_by_id.get(cashbook.owner_id)
        if owner:
            members.append({"user": owner, "is_owner": True, "added_at": cashbook.created_at})
        for row in rows:
            user = users_by_id.get(row.user_id)
            if user is None:
                logger.warning(f"Cashbook {cashbook.id} has member {row.user_id} with no user record")
                continue
            members.append({"user": user, "is_owner": False, "added_at": row.added_at})
        return members

    # -------------------------------------------------------------------------
    # Access checks
    # -------------------------------------------------------------------------

    async def ensure_can_manage_business(self, business_id: uuid.UUID, user_id: uuid.UUID) -> Roster:
        """Owners and Partners manage the team. Returns the roster it computed."""
        roster = await self.get_roster(business_id)
        if roster.role_of(user_id) not in (Role.OWNER, Role.PARTNER):
            raise ForbiddenError("Only the owner or a partner can manage this team")
        return roster

    async def ensure_can_view_business(self, business_id: uuid.UUID, user_id: uuid.UUID) -> Roster:
        roster = await self.get_roster(business_id)
        if roster.role_of(user_id) is None:
            raise ForbiddenError("You are not a member of this business")
        return roster

    async def ensure_can_manage_cashbook(self, cashbook_id: uuid.UUID, user_id: uuid.UUID) -> Cashbook:
        """The cashbook owner, or a manager of its business."""
        cashbook = await self.get_cashbook(cashbook_id)
        if cashbook.owner_id == user_id:
            return cashbook
        if cashbook.business_id is not None:
            await self.ensure_can_manage_business(cashbook.business_id, user_id)
            return cashbook
        raise ForbiddenError("Only the cashbook owner can manage its members")

    # -------------------------------------------------------------------------

    async def _build_roster(self, business: Business) -> Roster:
        cashbooks = await self.cashbook_repo.list_for_business(business.id)
        members_by_book = await self.cashbook_member_repo.get_members_by_book(
            [cashbook.id for cashbook in cashbooks]
        )
        business_members = await self.business_member_repo.list_for_business(business.id)

        referenced = {business.owner_id}
        referenced |= {cashbook.owner_id for cashbook in cashbooks}
        referenced |= {row.user_id for row in business_members}
        for member_ids in members_by_book.values():
            referenced |= member_ids
        users = await self.user_repo.get_many(referenced)

        return aggregate(business, cashbooks, members_by_book, users, business_members)

    async def _users_in_order(self, user_ids: List[uuid.UUID]) -> List[User]:
        users_by_id = {user.id: user for user in await self.user_repo.get_many(user_ids)}
        return [users_by_id[uid] for uid in user_ids if uid in users_by_id]
