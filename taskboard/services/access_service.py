from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, exists, or_
from sqlalchemy.orm import selectinload

from taskboard.models.board import Board, board_users
from taskboard.models.card import Comment
from taskboard.core.exceptions import BoardAccessDenied, AccessDeniedError
from taskboard.logs.server_log import api_logger


def _is_member(user_id: int):
    return exists().where(
        board_users.c.board_id == Board.id,
        board_users.c.user_id == user_id,
    )


class AccessGate:
    """Owner-or-member authorization for everything scoped to a board.

    Refusals raise BoardAccessDenied, which is a NotFoundError: callers can
    not tell a board they may not see from one that does not exist.
    """

    @staticmethod
    async def can_access(db: AsyncSession, user_id: int, board_id: int) -> bool:
        """True when the user owns the board or is one of its members"""
        query = select(Board.id).where(
            Board.id == board_id,
            or_(Board.owner_id == user_id, _is_member(user_id)),
        )
        result = await db.execute(query)
        return result.scalar() is not None

    @staticmethod
    async def is_owner(db: AsyncSession, user_id: int, board_id: int) -> bool:
        query = select(Board.id).where(Board.id == board_id, Board.owner_id == user_id)
        result = await db.execute(query)
        return result.scalar() is not None

    @staticmethod
    async def get_accessible_board(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        message: str = "Board not found"
    ) -> Board:
        """Load the board for an owner or member, raise BoardAccessDenied otherwise"""
        query = (
            select(Board)
            .where(Board.id == board_id, or_(Board.owner_id == user_id, _is_member(user_id)))
            .options(selectinload(Board.owner), selectinload(Board.members))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        board = result.scalars().first()
        if board is None:
            api_logger.warning(f"Access denied: user {user_id} to board {board_id}")
            raise BoardAccessDenied(message)
        return board

    @staticmethod
    async def get_owned_board(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        message: Optional[str] = None
    ) -> Board:
        """Load the board for its owner only"""
        query = (
            select(Board)
            .where(Board.id == board_id, Board.owner_id == user_id)
            .options(selectinload(Board.owner), selectinload(Board.members))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        board = result.scalars().first()
        if board is None:
            api_logger.warning(f"Owner check failed: user {user_id} on board {board_id}")
            raise BoardAccessDenied(message or "Board not found or you are not the owner")
        return board

    @staticmethod
    def ensure_comment_author(comment: Comment, user_id: int) -> None:
        """Only the author may change a comment, whatever their board role"""
        if comment.user_id != user_id:
            raise AccessDeniedError("Access denied")


async def check_board_access(session_factory, user_id: int, board_id: int) -> bool:
    """Gate check in a short-lived session of its own, for long-lived connections"""
    async with session_factory() as db:
        return await AccessGate.can_access(db, user_id, board_id)
