from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.models.board_list import BoardList, list_cards
from taskboard.models.card import Card, Comment, card_users
from taskboard.services.access_service import AccessGate
from taskboard.core.exceptions import ValidationError, NotFoundError
from taskboard.logs import debug_logger, log_function


class ListService:
    """Lists (columns) of a board"""

    @staticmethod
    async def get_board_lists(db: AsyncSession, board_id: int) -> List[BoardList]:
        query = (
            select(BoardList)
            .where(BoardList.board_id == board_id)
            .order_by(BoardList.order, BoardList.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_board_list(db: AsyncSession, board_id: int, list_id: int) -> BoardList:
        """List ``list_id`` if it belongs to ``board_id``"""
        query = select(BoardList).where(BoardList.id == list_id, BoardList.board_id == board_id)
        result = await db.execute(query)
        board_list = result.scalars().first()
        if board_list is None:
            raise NotFoundError("List not found")
        return board_list

    @staticmethod
    async def load(db: AsyncSession, list_id: int) -> Optional[BoardList]:
        query = (
            select(BoardList)
            .where(BoardList.id == list_id)
            .options(selectinload(BoardList.cards).selectinload(Card.assignees))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _get_for_user(db: AsyncSession, user_id: int, list_id: int) -> BoardList:
        board_list = await db.get(BoardList, list_id)
        if board_list is None:
            raise NotFoundError("List not found")
        await AccessGate.get_accessible_board(db, user_id, board_list.board_id, message="List not found")
        return board_list

    @staticmethod
    @log_function()
    async def create(db: AsyncSession, user_id: int, board_id: int, title: str) -> BoardList:
        """Append a list after the last one of the board"""
        if not title or not title.strip():
            raise ValidationError("List title is required")

        await AccessGate.get_accessible_board(db, user_id, board_id)

        max_order = await db.scalar(
            select(func.max(BoardList.order)).where(BoardList.board_id == board_id)
        )
        order = 0 if max_order is None else max_order + 1

        board_list = BoardList(title=title.strip(), board_id=board_id, order=order)
        db.add(board_list)
        await db.commit()

        debug_logger.info(f"List {board_list.id} created on board {board_id} at order {order}")
        return await ListService.load(db, board_list.id)

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        user_id: int,
        list_id: int,
        title: Optional[str] = None,
        order: Optional[int] = None
    ) -> BoardList:
        await ListService._get_for_user(db, user_id, list_id)

        update_data = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("List title is required")
            update_data["title"] = title.strip()
        if order is not None:
            update_data["order"] = order

        if update_data:
            update_data["updated_at"] = datetime.utcnow()
            await db.execute(update(BoardList).where(BoardList.id == list_id).values(**update_data))
            await db.commit()

        return await ListService.load(db, list_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, user_id: int, list_id: int) -> int:
        """Delete a list and every card in it; returns the board id"""
        board_list = await ListService._get_for_user(db, user_id, list_id)
        board_id = board_list.board_id

        list_card_ids = select(Card.id).where(Card.list_id == list_id)
        await db.execute(delete(Comment).where(Comment.card_id.in_(list_card_ids)))
        await db.execute(delete(card_users).where(card_users.c.card_id.in_(list_card_ids)))
        await db.execute(delete(list_cards).where(list_cards.c.list_id == list_id))
        await db.execute(delete(Card).where(Card.list_id == list_id))
        await db.execute(delete(BoardList).where(BoardList.id == list_id))
        await db.commit()

        debug_logger.info(f"List {list_id} deleted from board {board_id} by user {user_id}")
        return board_id

    @staticmethod
    @log_function()
    async def reorder(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        list_orders: List[Dict[str, int]]
    ) -> List[BoardList]:
        """Apply ``[{"list_id", "order"}]`` as a batch.

        Entries are independent: unknown lists and lists of other boards are
        skipped and logged instead of failing the batch.
        """
        await AccessGate.get_accessible_board(db, user_id, board_id)

        now = datetime.utcnow()
        for item in list_orders:
            stmt = (
                update(BoardList)
                .where(BoardList.id == item["list_id"], BoardList.board_id == board_id)
                .values(order=item["order"], updated_at=now)
            )
            result = await db.execute(stmt)
            if result.rowcount == 0:
                debug_logger.warning(f"Reorder skipped list {item['list_id']} on board {board_id}")
        await db.commit()

        return await ListService.get_board_lists(db, board_id)
