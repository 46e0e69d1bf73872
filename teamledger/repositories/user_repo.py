"""
User repository.
Read-only access to user records owned by the auth service.
"""
import uuid
from typing import List, Iterable

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.models.user import User
from teamledger.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(User, session)
    
    async def get_many(self, user_ids: Iterable[uuid.UUID]) -> List[User]:
        """Get every user whose id is in user_ids. Unknown ids are skipped."""
        ids = list(user_ids)
        if not ids:
            return []
        query = select(User).where(User.id.in_(ids))
        result = await self.session.exec(query)
        return list(result.all())
