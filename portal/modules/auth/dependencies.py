from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import Optional
import uuid

from portal.core.database import get_db
from portal.core.exceptions import AuthenticationError, InvalidTokenError, UserNotFoundError
from portal.core.logging_config import set_user_id
from portal.core.security import decode_token
from portal.models.user import User
from portal.modules.auth.roles import Caller

# auto_error=False so a missing header becomes our 401 rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user with both role profiles loaded"""

    if credentials is None:
        raise AuthenticationError()

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid token payload")

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise InvalidTokenError("Invalid user ID format")

    result = await db.execute(
        select(User)
        .options(selectinload(User.student), selectinload(User.teacher))
        .where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise UserNotFoundError(user_id)

    set_user_id(user.id)
    return user


async def get_caller(current_user: User = Depends(get_current_user)) -> Caller:
    """Resolve the caller's roles once for the request"""
    return Caller.from_user(current_user)
