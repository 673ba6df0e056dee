from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.models.board_list import list_cards
from taskboard.models.card import Card, Comment, CardStatus, CardPriority, card_users
from taskboard.models.user import User
from taskboard.db.set_ops import add_to_set, pull_from_set
from taskboard.services.access_service import AccessGate
from taskboard.services.list_service import ListService
from taskboard.services.status_lists import find_list_for_status
from taskboard.core.exceptions import ValidationError, NotFoundError
from taskboard.logs import debug_logger, log_function


# Fields copied onto the card as given
PLAIN_FIELDS = ("title", "description", "labels", "due_date", "order")


def parse_status(value) -> CardStatus:
    try:
        return CardStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


def parse_priority(value) -> CardPriority:
    try:
        return CardPriority(value)
    except ValueError:
        raise ValidationError(f"Invalid priority: {value}")


class CardService:
    """Cards and their place in the lists of a board"""

    @staticmethod
    async def load(db: AsyncSession, card_id: int, with_comments: bool = False) -> Optional[Card]:
        options = [selectinload(Card.assignees)]
        if with_comments:
            options.append(selectinload(Card.comments).selectinload(Comment.author))

        query = (
            select(Card)
            .where(Card.id == card_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _get_for_user(db: AsyncSession, user_id: int, card_id: int) -> Card:
        card = await CardService.load(db, card_id)
        if card is None:
            raise NotFoundError("Card not found")
        await AccessGate.get_accessible_board(db, user_id, card.board_id, message="Card not found")
        return card

    @staticmethod
    async def _next_order(db: AsyncSession, board_id: int, list_id: Optional[int], status: CardStatus) -> int:
        """max + 1 within the list, or within board and status for unlisted cards"""
        if list_id is not None:
            query = select(func.max(Card.order)).where(Card.list_id == list_id)
        else:
            query = select(func.max(Card.order)).where(Card.board_id == board_id, Card.status == status)
        max_order = await db.scalar(query)
        return 0 if max_order is None else max_order + 1

    @staticmethod
    async def _relocate(db: AsyncSession, card: Card, new_list_id: Optional[int]) -> None:
        """Move the card between list card collections and point list_id at the target"""
        if card.list_id is not None:
            await pull_from_set(db, list_cards, list_id=card.list_id, card_id=card.id)
        if new_list_id is not None:
            await add_to_set(db, list_cards, list_id=new_list_id, card_id=card.id)

        debug_logger.debug(f"Card {card.id} relocated from list {card.list_id} to {new_list_id}")
        card.list_id = new_list_id

    @staticmethod
    async def _set_assignees(db: AsyncSession, card: Card, user_ids: List[int]) -> List[int]:
        """Replace the assignees; returns the ids that were not assigned before"""
        wanted = list(dict.fromkeys(user_ids))
        users = []
        if wanted:
            result = await db.execute(select(User).where(User.id.in_(wanted)))
            users = list(result.scalars().all())
            if len(users) != len(wanted):
                raise ValidationError("Assignee not found")

        previous = {user.id for user in card.assignees}
        card.assignees = users
        return [user_id for user_id in wanted if user_id not in previous]

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        user_id: int,
        board_id: int,
        title: str,
        list_id: Optional[int] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        labels: Optional[List[str]] = None,
        assignee_ids: Optional[List[int]] = None
    ) -> Tuple[Card, List[int]]:
        """Create a card on a board.

        Target list: an explicit ``list_id`` wins; otherwise, when a status is
        given, the board list whose title matches it; otherwise none.
        Returns the card and the ids of the users assigned to it.
        """
        if not title or not title.strip():
            raise ValidationError("Card title is required")

        await AccessGate.get_accessible_board(db, user_id, board_id)

        card_status = parse_status(status) if status is not None else CardStatus.TODO
        card_priority = parse_priority(priority) if priority is not None else CardPriority.MEDIUM

        target_list_id = None
        if list_id is not None:
            target_list_id = (await ListService.get_board_list(db, board_id, list_id)).id
        elif status is not None:
            lists = await ListService.get_board_lists(db, board_id)
            matched = find_list_for_status(lists, card_status)
            if matched is not None:
                target_list_id = matched.id

        card = Card(
            title=title.strip(),
            description=description or "",
            board_id=board_id,
            list_id=target_list_id,
            status=card_status,
            priority=card_priority,
            labels=list(labels or []),
            due_date=due_date,
            order=await CardService._next_order(db, board_id, target_list_id, card_status),
            assignees=[],
        )
        db.add(card)
        await db.flush()

        if target_list_id is not None:
            await add_to_set(db, list_cards, list_id=target_list_id, card_id=card.id)

        assigned = []
        if assignee_ids:
            assigned = await CardService._set_assignees(db, card, assignee_ids)

        await db.commit()

        debug_logger.info(
            f"Card {card.id} created on board {board_id} in list {target_list_id} at order {card.order}"
        )
        return await CardService.load(db, card.id), assigned

    @staticmethod
    async def get(db: AsyncSession, user_id: int, card_id: int) -> Card:
        """Card with assignees and comments, newest comment first"""
        card = await CardService._get_for_user(db, user_id, card_id)
        return await CardService.load(db, card.id, with_comments=True)

    @staticmethod
    @log_function()
    async def update(db: AsyncSession, user_id: int, card_id: int, **fields) -> Tuple[Card, List[int]]:
        """Partial update of a card.

        Only keys present in ``fields`` are touched. A status change first
        relocates the card to the list matching the new status, if there is
        one; an explicit ``list_id`` is then applied on top of that
        (``None`` unlists the card). ``assignee_ids`` replaces the assignees.
        Returns the card and the ids of newly assigned users.
        """
        card = await CardService._get_for_user(db, user_id, card_id)

        if "title" in fields and (fields["title"] is None or not fields["title"].strip()):
            raise ValidationError("Card title is required")

        if fields.get("status") is not None:
            new_status = parse_status(fields["status"])
            if new_status != card.status:
                lists = await ListService.get_board_lists(db, card.board_id)
                matched = find_list_for_status(lists, new_status)
                if matched is not None and matched.id != card.list_id:
                    await CardService._relocate(db, card, matched.id)
            card.status = new_status

        if "list_id" in fields:
            new_list_id = fields["list_id"]
            if new_list_id != card.list_id:
                if new_list_id is not None:
                    await ListService.get_board_list(db, card.board_id, new_list_id)
                await CardService._relocate(db, card, new_list_id)

        if fields.get("priority") is not None:
            card.priority = parse_priority(fields["priority"])

        for name in PLAIN_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name == "title":
                value = value.strip()
            elif name in ("description", "labels") and value is None:
                value = "" if name == "description" else []
            elif name == "order" and value is None:
                continue
            setattr(card, name, value)

        newly_assigned = []
        if fields.get("assignee_ids") is not None:
            newly_assigned = await CardService._set_assignees(db, card, fields["assignee_ids"])

        card.updated_at = datetime.utcnow()
        await db.commit()

        debug_logger.info(f"Card {card_id} updated by user {user_id}: {sorted(fields)}")
        return await CardService.load(db, card_id), newly_assigned

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, user_id: int, card_id: int) -> Card:
        """Delete a card and take it out of its list; returns the deleted card"""
        card = await CardService._get_for_user(db, user_id, card_id)

        await pull_from_set(db, list_cards, card_id=card.id)
        await db.execute(delete(Comment).where(Comment.card_id == card.id))
        await db.execute(delete(card_users).where(card_users.c.card_id == card.id))
        await db.execute(delete(Card).where(Card.id == card.id))
        await db.commit()

        debug_logger.info(f"Card {card_id} deleted from board {card.board_id} by user {user_id}")
        return card

    @staticmethod
    @log_function()
    async def move(
        db: AsyncSession,
        user_id: int,
        card_id: int,
        new_order: Optional[int],
        new_list_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> Tuple[Card, Optional[int]]:
        """Drag-and-drop move.

        A status change relocates to ``new_list_id`` when given, else to the
        list matching the status. Without a status change ``new_list_id``
        alone relocates. ``new_order`` is always applied.
        Returns the card and the list it came from.
        """
        if new_order is None:
            raise ValidationError("New order is required")

        card = await CardService._get_for_user(db, user_id, card_id)
        source_list_id = card.list_id

        target_list_id = None
        if new_list_id is not None:
            target_list_id = (await ListService.get_board_list(db, card.board_id, new_list_id)).id

        new_status = parse_status(status) if status is not None else None
        if new_status is not None and new_status != card.status:
            card.status = new_status
            if target_list_id is None:
                lists = await ListService.get_board_lists(db, card.board_id)
                matched = find_list_for_status(lists, new_status)
                if matched is not None:
                    target_list_id = matched.id

        if target_list_id is not None and target_list_id != card.list_id:
            await CardService._relocate(db, card, target_list_id)

        card.order = new_order
        card.updated_at = datetime.utcnow()
        await db.commit()

        debug_logger.info(
            f"Card {card_id} moved from list {source_list_id} to {card.list_id} at order {new_order}"
        )
        return await CardService.load(db, card_id), source_list_id

    @staticmethod
    async def get_by_status(db: AsyncSession, user_id: int, board_id: int, status: str) -> List[Card]:
        """Cards of the board in ``status``, by order ascending"""
        card_status = parse_status(status)
        await AccessGate.get_accessible_board(db, user_id, board_id)

        query = (
            select(Card)
            .where(Card.board_id == board_id, Card.status == card_status)
            .options(selectinload(Card.assignees))
            .order_by(Card.order, Card.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())
