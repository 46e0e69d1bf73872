"""
Tests for adding and removing members.
"""
import asyncio
import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from teamledger.core.exceptions import (
    AlreadyMemberError,
    NotMemberError,
    IsOwnerError,
    NotFoundError,
    InvalidRoleError
)
from teamledger.models import CashbookMember, BusinessMember, ActivityLog
from teamledger.models.activity import Actions
from teamledger.repositories.business_repo import CashbookMemberRepository, BusinessMemberRepository
from teamledger.services.membership_service import MembershipService


async def _cashbook_rows(session, cashbook_id, user_id):
    result = await session.exec(
        select(CashbookMember).where(
            CashbookMember.cashbook_id == cashbook_id,
            CashbookMember.user_id == user_id
        )
    )
    return result.all()


async def _business_rows(session, business_id, user_id):
    result = await session.exec(
        select(BusinessMember).where(
            BusinessMember.business_id == business_id,
            BusinessMember.user_id == user_id
        )
    )
    return result.all()


async def _attempt(session_factory, add):
    """Run one add in its own session and report how it ended."""
    async with session_factory() as session:
        try:
            await add(MembershipService(session))
        except AlreadyMemberError:
            return "already"
        return "ok"


async def _no_membership(self, *args, **kwargs):
    return None


class TestCashbookMembership:
    async def test_add_member(self, session_factory, team):
        async with session_factory() as session:
            membership = await MembershipService(session).add_to_cashbook(
                team.market, team.newcomer, actor_id=team.partner
            )
            assert membership.user_id == team.newcomer
            assert membership.added_by == team.partner

        async with session_factory() as session:
            assert len(await _cashbook_rows(session, team.market, team.newcomer)) == 1
            result = await session.exec(
                select(ActivityLog).where(ActivityLog.action == Actions.CASHBOOK_MEMBER_ADDED)
            )
            assert len(result.all()) == 1

    async def test_add_twice_is_already_member(self, session_factory, team):
        async with session_factory() as session:
            await MembershipService(session).add_to_cashbook(team.market, team.newcomer)

        async with session_factory() as session:
            with pytest.raises(AlreadyMemberError):
                await MembershipService(session).add_to_cashbook(team.market, team.newcomer)

        async with session_factory() as session:
            assert len(await _cashbook_rows(session, team.market, team.newcomer)) == 1

    async def test_add_owner_is_rejected(self, session, team):
        with pytest.raises(IsOwnerError):
            await MembershipService(session).add_to_cashbook(team.market, team.partner)

    async def test_add_unknown_user(self, session, team):
        with pytest.raises(NotFoundError):
            await MembershipService(session).add_to_cashbook(team.market, uuid.uuid4())

    async def test_add_to_unknown_cashbook(self, session, team):
        with pytest.raises(NotFoundError):
            await MembershipService(session).add_to_cashbook(uuid.uuid4(), team.newcomer)

    async def test_unique_pair_is_enforced_by_the_store(self, session, team):
        session.add(CashbookMember(cashbook_id=team.main_till, user_id=team.staff_a))
        with pytest.raises(IntegrityError):
            await session.commit()

    async def test_remove_member(self, session_factory, team):
        async with session_factory() as session:
            await MembershipService(session).remove_from_cashbook(
                team.main_till, team.staff_a, actor_id=team.owner
            )

        async with session_factory() as session:
            assert await _cashbook_rows(session, team.main_till, team.staff_a) == []

    async def test_remove_owner_always_fails(self, session, team):
        service = MembershipService(session)
        with pytest.raises(IsOwnerError):
            await service.remove_from_cashbook(team.main_till, team.owner)
        with pytest.raises(IsOwnerError):
            await service.remove_from_cashbook(team.market, team.partner)

    async def test_remove_non_member(self, session, team):
        with pytest.raises(NotMemberError):
            await MembershipService(session).remove_from_cashbook(team.main_till, team.staff_b)


class TestBusinessMembership:
    async def test_add_partner(self, session, team):
        membership = await MembershipService(session).add_to_business(
            team.business, team.newcomer, "Partner", actor_id=team.owner
        )
        assert membership.role == "Partner"
        assert membership.business_id == team.business

    async def test_add_owner_role_is_rejected(self, session, team):
        with pytest.raises(InvalidRoleError):
            await MembershipService(session).add_to_business(team.business, team.newcomer, "Owner")

    async def test_add_business_owner(self, session, team):
        with pytest.raises(IsOwnerError):
            await MembershipService(session).add_to_business(team.business, team.owner, "Staff")

    async def test_add_twice(self, session_factory, team):
        async with session_factory() as session:
            await MembershipService(session).add_to_business(team.business, team.newcomer, "Staff")

        async with session_factory() as session:
            with pytest.raises(AlreadyMemberError):
                await MembershipService(session).add_to_business(team.business, team.newcomer, "Partner")

    async def test_remove_cascades_to_cashbooks(self, session_factory, team):
        async with session_factory() as session:
            await MembershipService(session).add_to_business(team.business, team.staff_a, "Staff")
            await MembershipService(session).add_to_cashbook(team.market, team.staff_a)

        async with session_factory() as session:
            removed = await MembershipService(session).remove_from_business(
                team.business, team.staff_a, actor_id=team.owner
            )
            assert removed == 2

        async with session_factory() as session:
            assert await _cashbook_rows(session, team.main_till, team.staff_a) == []
            assert await _cashbook_rows(session, team.market, team.staff_a) == []
            result = await session.exec(
                select(BusinessMember).where(BusinessMember.user_id == team.staff_a)
            )
            assert result.all() == []

    async def test_remove_cashbook_only_staff(self, session, team):
        removed = await MembershipService(session).remove_from_business(team.business, team.staff_b)
        assert removed == 1

    async def test_remove_business_owner(self, session, team):
        with pytest.raises(IsOwnerError):
            await MembershipService(session).remove_from_business(team.business, team.owner)

    async def test_remove_cashbook_owner(self, session, team):
        with pytest.raises(IsOwnerError):
            await MembershipService(session).remove_from_business(team.business, team.partner)

    async def test_remove_stranger(self, session, team):
        with pytest.raises(NotMemberError):
            await MembershipService(session).remove_from_business(team.business, team.outsider)


class TestConcurrentAdds:
    async def test_simultaneous_cashbook_adds_store_one_row(self, session_factory, team):
        def add(service):
            return service.add_to_cashbook(team.market, team.newcomer, actor_id=team.partner)

        outcomes = await asyncio.gather(
            _attempt(session_factory, add),
            _attempt(session_factory, add)
        )

        assert sorted(outcomes) == ["already", "ok"]
        async with session_factory() as session:
            assert len(await _cashbook_rows(session, team.market, team.newcomer)) == 1

    async def test_simultaneous_business_adds_store_one_row(self, session_factory, team):
        def add(service):
            return service.add_to_business(team.business, team.newcomer, "Staff", actor_id=team.owner)

        outcomes = await asyncio.gather(
            _attempt(session_factory, add),
            _attempt(session_factory, add)
        )

        assert sorted(outcomes) == ["already", "ok"]
        async with session_factory() as session:
            assert len(await _business_rows(session, team.business, team.newcomer)) == 1

    async def test_stale_cashbook_check_falls_back_to_unique_pair(self, session_factory, team, monkeypatch):
        # The existence check misses the row another request just committed
        monkeypatch.setattr(CashbookMemberRepository, "get_membership", _no_membership)

        async with session_factory() as session:
            with pytest.raises(AlreadyMemberError) as exc_info:
                await MembershipService(session).add_to_cashbook(team.main_till, team.staff_a)
            assert exc_info.value.code == "AlreadyMember"

        async with session_factory() as session:
            assert len(await _cashbook_rows(session, team.main_till, team.staff_a)) == 1
            result = await session.exec(
                select(ActivityLog).where(ActivityLog.action == Actions.CASHBOOK_MEMBER_ADDED)
            )
            assert result.all() == []

    async def test_stale_business_check_falls_back_to_unique_pair(self, session_factory, team, monkeypatch):
        async with session_factory() as session:
            await MembershipService(session).add_to_business(team.business, team.newcomer, "Staff")

        monkeypatch.setattr(BusinessMemberRepository, "get_membership", _no_membership)

        async with session_factory() as session:
            with pytest.raises(AlreadyMemberError):
                await MembershipService(session).add_to_business(team.business, team.newcomer, "Partner")

        async with session_factory() as session:
            rows = await _business_rows(session, team.business, team.newcomer)
            assert [row.role for row in rows] == ["Staff"]
