from typing import Optional
from fastapi import Depends
from fastapi.requests import HTTPConnection
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.services.security_service import SecurityService
from taskboard.services.realtime_service import RoomRegistry
from taskboard.core.exceptions import AuthenticationError
from taskboard.models.user import User

# OAuth2 configuration; missing headers are reported by get_current_user
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_session)
) -> User:
    """
    Get the current authenticated user from the JWT token

    Raises:
        AuthenticationError: If the token is missing, invalid, expired or the user is gone
    """
    if not token:
        raise AuthenticationError("Not authorized, no token")

    user = await SecurityService.get_current_user(db, token)
    if not user:
        raise AuthenticationError("Not authorized, token failed")
    return user


async def get_current_user_from_token(
    token: Optional[str],
    db: AsyncSession
) -> User:
    """Same check as get_current_user, for websocket connections"""
    if not token:
        raise AuthenticationError("Authentication token required")

    user = await SecurityService.get_current_user(db, token)
    if not user:
        raise AuthenticationError("Invalid authentication credentials")
    return user


def get_room_registry(connection: HTTPConnection) -> RoomRegistry:
    """The room registry owned by the running application"""
    return connection.app.state.room_registry
