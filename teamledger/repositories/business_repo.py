"""
Business, Cashbook and membership repositories.
"""
import uuid
from typing import Optional, List, Dict, Set, Iterable

from sqlmodel import select
from sqlalchemy import delete
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.models.business import Business, Cashbook, CashbookMember, BusinessMember
from teamledger.repositories.base import BaseRepository


class BusinessRepository(BaseRepository[Business]):
    """Repository for Business operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Business, session)


class CashbookRepository(BaseRepository[Cashbook]):
    """Repository for Cashbook operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Cashbook, session)
    
    async def list_for_business(self, business_id: uuid.UUID) -> List[Cashbook]:
        """Get all cashbooks belonging to a business."""
        query = select(Cashbook).where(
            Cashbook.business_id == business_id
        ).order_by(Cashbook.created_at)
        result = await self.session.exec(query)
        return list(result.all())
    
    async def list_owned_in_business(
        self, 
        business_id: uuid.UUID, 
        owner_id: uuid.UUID
    ) -> List[Cashbook]:
        """Get the cashbooks of a business owned by one user."""
        query = select(Cashbook).where(
            Cashbook.business_id == business_id,
            Cashbook.owner_id == owner_id
        )
        result = await self.session.exec(query)
        return list(result.all())


class CashbookMemberRepository(BaseRepository[CashbookMember]):
    """Repository for CashbookMember (junction table) operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(CashbookMember, session)
    
    async def get_membership(
        self, 
        cashbook_id: uuid.UUID, 
        user_id: uuid.UUID
    ) -> Optional[CashbookMember]:
        """Get specific membership record."""
        query = select(CashbookMember).where(
            CashbookMember.cashbook_id == cashbook_id,
            CashbookMember.user_id == user_id
        )
        result = await self.session.exec(query)
        return result.first()
    
    async def get_member_ids(self, cashbook_id: uuid.UUID) -> Set[uuid.UUID]:
        """Get the user ids of all members of a cashbook."""
        query = select(CashbookMember.user_id).where(
            CashbookMember.cashbook_id == cashbook_id
        )
        result = await self.session.exec(query)
        return set(result.all())
    
    async def get_members_by_book(
        self, 
        cashbook_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, Set[uuid.UUID]]:
        """Map each cashbook id to its member user ids (empty set if none)."""
        ids = list(cashbook_ids)
        members: Dict[uuid.UUID, Set[uuid.UUID]] = {cashbook_id: set() for cashbook_id in ids}
        if not ids:
            return members
        
        query = select(CashbookMember).where(CashbookMember.cashbook_id.in_(ids))
        result = await self.session.exec(query)
        for row in result.all():
            members[row.cashbook_id].add(row.user_id)
        return members
    
    async def list_for_cashbook(self, cashbook_id: uuid.UUID) -> List[CashbookMember]:
        """Get membership rows of a cashbook, oldest first."""
        query = select(CashbookMember).where(
            CashbookMember.cashbook_id == cashbook_id
        ).order_by(CashbookMember.added_at)
        result = await self.session.exec(query)
        return list(result.all())
    
    async def add_member(
        self,
        cashbook_id: uuid.UUID,
        user_id: uuid.UUID,
        added_by: Optional[uuid.UUID] = None,
        commit: bool = True
    ) -> CashbookMember:
        """
        Insert a membership row.
        A duplicate pair raises IntegrityError from the unique constraint.
        """
        return await self.create({
            "cashbook_id": cashbook_id,
            "user_id": user_id,
            "added_by": added_by
        }, commit=commit)
    
    async def remove_member(
        self, 
        cashbook_id: uuid.UUID, 
        user_id: uuid.UUID,
        commit: bool = True
    ) -> bool:
        """Delete a membership row. Returns False if there was none."""
        statement = delete(CashbookMember).where(
            CashbookMember.cashbook_id == cashbook_id,
            CashbookMember.user_id == user_id
        )
        result = await self.session.exec(statement)
        if commit:
            await self.session.commit()
        return result.rowcount > 0
    
    async def remove_user_from_cashbooks(
        self,
        user_id: uuid.UUID,
        cashbook_ids: Iterable[uuid.UUID],
        commit: bool = True
    ) -> int:
        """Delete a user's membership rows in the given cashbooks."""
        ids = list(cashbook_ids)
        if not ids:
            return 0
        statement = delete(CashbookMember).where(
            CashbookMember.user_id == user_id,
            CashbookMember.cashbook_id.in_(ids)
        )
        result = await self.session.exec(statement)
        if commit:
            await self.session.commit()
        return result.rowcount


class BusinessMemberRepository(BaseRepository[BusinessMember]):
    """Repository for BusinessMember (junction table) operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(BusinessMember, session)
    
    async def get_membership(
        self, 
        business_id: uuid.UUID, 
        user_id: uuid.UUID
    ) -> Optional[BusinessMember]:
        """Get specific membership record."""
        query = select(BusinessMember).where(
            BusinessMember.business_id == business_id,
            BusinessMember.user_id == user_id
        )
        result = await self.session.exec(query)
        return result.first()
    
    async def list_for_business(self, business_id: uuid.UUID) -> List[BusinessMember]:
        """Get all business-level members."""
        query = select(BusinessMember).where(
            BusinessMember.business_id == business_id
        ).order_by(BusinessMember.added_at)
        result = await self.session.exec(query)
        return list(result.all())
    
    async def add_member(
        self,
        business_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
        added_by: Optional[uuid.UUID] = None,
        commit: bool = True
    ) -> BusinessMember:
        """
        Insert a business-level membership.
        A duplicate pair raises IntegrityError from the unique constraint.
        """
        return await self.create({
            "business_id": business_id,
            "user_id": user_id,
            "role": role,
            "added_by": added_by
        }, commit=commit)
    
    async def remove_member(
        self,
        business_id: uuid.UUID,
        user_id: uuid.UUID,
        commit: bool = True
    ) -> bool:
        """Delete a business-level membership. Returns False if there was none."""
        statement = delete(BusinessMember).where(
            BusinessMember.business_id == business_id,
            BusinessMember.user_id == user_id
        )
        result = await self.session.exec(statement)
        if commit:
            await self.session.commit()
        return result.rowcount > 0
