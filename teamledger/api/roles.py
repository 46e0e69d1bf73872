"""
Role catalog API route.
"""
from fastapi import APIRouter, Depends

from teamledger.core.roles import role_catalog
from teamledger.schemas.team import RoleCatalogResponse
from teamledger.api.deps import get_current_user
from teamledger.models.user import User

router = APIRouter(prefix="/api/roles", tags=["roles"])


@router.get("", response_model=RoleCatalogResponse)
async def list_roles(current_user: User = Depends(get_current_user)):
    """Owner, Partner and Staff with the permissions each one carries."""
    return RoleCatalogResponse(roles=role_catalog())
