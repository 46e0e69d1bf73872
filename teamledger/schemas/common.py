"""
Common schemas used across multiple endpoints.
"""
import uuid
from datetime import datetime
from typing import List, Optional, Any, Dict
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    
    class Config:
        json_schema_extra = {"example": {"message": "Operation successful"}}


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"


class ActivityResponse(BaseModel):
    """One audit trail entry."""
    id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    action: str
    entity_type: str
    entity_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    meta_data: Dict[str, Any] = {}
    created_at: datetime
    
    class Config:
        from_attributes = True


class ActivityPageResponse(BaseModel):
    """Paginated activity feed."""
    items: List[ActivityResponse]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool
