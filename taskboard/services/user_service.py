from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func

from taskboard.models.user import User
from taskboard.core.exceptions import ValidationError, NotFoundError


class UserService:
    """Read side of users: lookup and search"""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_profile(db: AsyncSession, user_id: int) -> User:
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def search(db: AsyncSession, query: str, limit: int = 10) -> List[User]:
        """Users whose name or email contains ``query``, ignoring case"""
        if not query or not query.strip():
            raise ValidationError("Search query is required")

        pattern = f"%{query.strip().lower()}%"
        stmt = (
            select(User)
            .where(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))
            .order_by(User.name, User.id)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
