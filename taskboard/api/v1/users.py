from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.auth import UserProfile
from taskboard.services.user_service import UserService

# Create router
router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=List[UserProfile])
async def search_users(
    q: str = Query("", description="Part of a name or email"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Find users to invite, by name or email"""
    return await UserService.search(db, q)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await UserService.get_profile(db, user_id)
