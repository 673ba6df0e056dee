from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_, exists
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.models.board import Board, board_users
from taskboard.models.board_list import BoardList, list_cards
from taskboard.models.card import Card, Comment, card_users
from taskboard.models.user import User
from taskboard.db.set_ops import add_to_set
from taskboard.services.access_service import AccessGate
from taskboard.core.exceptions import ValidationError, NotFoundError, ConflictError
from taskboard.logs import debug_logger, log_function


def _board_query(board_id: int):
    return (
        select(Board)
        .where(Board.id == board_id)
        .options(
            selectinload(Board.owner),
            selectinload(Board.members),
            selectinload(Board.lists).selectinload(BoardList.cards).selectinload(Card.assignees),
        )
        .execution_options(populate_existing=True)
    )


class BoardService:
    """Board lifecycle and membership"""

    @staticmethod
    async def load(db: AsyncSession, board_id: int) -> Optional[Board]:
        """Board with owner, members and lists with their cards; no access check"""
        result = await db.execute(_board_query(board_id))
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        owner_id: int,
        title: str,
        description: Optional[str] = None
    ) -> Board:
        """Create a board; the creator becomes its owner and first member"""
        if not title or not title.strip():
            raise ValidationError("Board title is required")

        board = Board(
            title=title.strip(),
            description=description or "",
            owner_id=owner_id,
            labels=[],
        )
        db.add(board)
        await db.flush()

        await add_to_set(db, board_users, user_id=owner_id, board_id=board.id)
        await db.commit()

        debug_logger.info(f"Board {board.id} created by user {owner_id}")
        return await BoardService.load(db, board.id)

    @staticmethod
    async def get_for_user(db: AsyncSession, user_id: int, board_id: int) -> Board:
        """Full board for an owner or member"""
        await AccessGate.get_accessible_board(db, user_id, board_id)
        return await BoardService.load(db, board_id)

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: int) -> List[Board]:
        """Boards the user owns or belongs to, most recently updated first"""
        is_member = exists().where(
            board_users.c.board_id == Board.id,
            board_users.c.user_id == user_id,
        )
        query = (
            select(Board)
            .where(or_(Board.owner_id == user_id, is_member))
            .options(selectinload(Board.owner), selectinload(Board.members))
            .order_by(Board.updated_at.desc(), Board.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        labels: Optional[list] = None
    ) -> Board:
        """Partial update; labels replace the whole set when given"""
        await AccessGate.get_accessible_board(db, user_id, board_id)

        update_data = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Board title is required")
            update_data["title"] = title.strip()
        if description is not None:
            update_data["description"] = description
        if labels is not None:
            update_data["labels"] = [dict(label) for label in labels]

        if update_data:
            update_data["updated_at"] = datetime.utcnow()
            stmt = update(Board).where(Board.id == board_id).values(**update_data)
            await db.execute(stmt)
            await db.commit()
            debug_logger.info(f"Board {board_id} updated by user {user_id}: {sorted(update_data)}")

        return await BoardService.load(db, board_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, user_id: int, board_id: int) -> None:
        """Owner-only delete, cascading to every card and list of the board.

        Each step is its own statement and the cascade is committed once at
        the end; cards go before lists, lists before the board.
        """
        await AccessGate.get_owned_board(db, user_id, board_id)

        board_cards = select(Card.id).where(Card.board_id == board_id)
        board_lists = select(BoardList.id).where(BoardList.board_id == board_id)

        await db.execute(delete(Comment).where(Comment.card_id.in_(board_cards)))
        await db.execute(delete(card_users).where(card_users.c.card_id.in_(board_cards)))
        await db.execute(delete(list_cards).where(list_cards.c.list_id.in_(board_lists)))
        await db.execute(delete(Card).where(Card.board_id == board_id))
        await db.execute(delete(BoardList).where(BoardList.board_id == board_id))
        await db.execute(delete(board_users).where(board_users.c.board_id == board_id))
        await db.execute(delete(Board).where(Board.id == board_id))
        await db.commit()

        debug_logger.info(f"Board {board_id} deleted by owner {user_id}")

    @staticmethod
    @log_function()
    async def add_member(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        member_id: Optional[int]
    ) -> Board:
        """Invite a user; any owner or member may invite"""
        if member_id is None:
            raise ValidationError("Member ID is required")

        await AccessGate.get_accessible_board(db, user_id, board_id)

        member = await db.get(User, member_id)
        if member is None:
            raise NotFoundError("User not found")

        added = await add_to_set(db, board_users, user_id=member_id, board_id=board_id)
        if not added:
            raise ConflictError("Member already added to this board")

        await db.execute(
            update(Board).where(Board.id == board_id).values(updated_at=datetime.utcnow())
        )
        await db.commit()

        debug_logger.info(f"User {member_id} added to board {board_id} by user {user_id}")
        return await BoardService.load(db, board_id)

    @staticmethod
    @log_function()
    async def remove_member(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        member_id: int
    ) -> Board:
        """Owner-only removal.

        The membership rows of both ``member_id`` and the acting owner are
        removed in one statement. The owner keeps access through ownership.
        """
        await AccessGate.get_owned_board(db, user_id, board_id)

        stmt = delete(board_users).where(
            board_users.c.board_id == board_id,
            board_users.c.user_id.in_([member_id, user_id]),
        )
        result = await db.execute(stmt)
        await db.execute(
            update(Board).where(Board.id == board_id).values(updated_at=datetime.utcnow())
        )
        await db.commit()

        debug_logger.info(
            f"Removed {result.rowcount} membership(s) from board {board_id} "
            f"(target {member_id}, owner {user_id})"
        )
        return await BoardService.load(db, board_id)

    @staticmethod
    @log_function()
    async def leave(db: AsyncSession, user_id: int, board_id: int) -> None:
        """A member leaves the board; the owner cannot"""
        board = await AccessGate.get_accessible_board(db, user_id, board_id)
        if board.owner_id == user_id:
            raise ValidationError("The owner cannot leave the board")

        await db.execute(
            delete(board_users).where(
                board_users.c.board_id == board_id,
                board_users.c.user_id == user_id,
            )
        )
        await db.commit()
        debug_logger.info(f"User {user_id} left board {board_id}")
