"""
API dependencies - shared across all routes.
"""
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger.database import get_session
from teamledger.config import settings
from teamledger.core.security import verify_token
from teamledger.core.exceptions import raise_unauthorized
from teamledger.models.user import User
from teamledger.repositories.user_repo import UserRepository


# Tokens are issued by the auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme), 
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token, "access")
    if not payload:
        raise_unauthorized("Could not validate credentials")
    
    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")
    
    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise_unauthorized("Could not validate credentials")
    
    user_repo = UserRepository(session)
    user = await user_repo.get(user_uuid)
    
    if not user:
        raise_unauthorized("User not found")
    
    if not user.is_active:
        raise_unauthorized("User account is deactivated")
    
    return user
