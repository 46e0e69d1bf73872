"""
Activity log repository.
"""
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.models.activity import ActivityLog
from teamledger.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for ActivityLog operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(ActivityLog, session)
    
    async def log(
        self,
        business_id: Optional[uuid.UUID],
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID] = None,
        actor_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        meta_data: Optional[dict] = None,
        commit: bool = True
    ) -> ActivityLog:
        """Create an activity log entry."""
        activity = ActivityLog(
            business_id=business_id,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            meta_data=meta_data or {}
        )
        self.session.add(activity)
        if commit:
            await self.session.commit()
            await self.session.refresh(activity)
        return activity
    
    async def get_feed(
        self, 
        business_id: uuid.UUID, 
        page: int = 1, 
        limit: int = 20
    ) -> dict:
        """Paginated activity of a business, newest first."""
        return await self.list_paginated(
            filters={"business_id": business_id},
            page=page,
            limit=limit
        )
