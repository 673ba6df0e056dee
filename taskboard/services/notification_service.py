"""In-app notifications.

CRUD for the notification inbox of a user, plus the triggers fired by board
activity (assignment, mention, membership). Triggers are best effort: they
run after the response in a session of their own, and a failure is logged
and dropped, never retried.
"""
import re
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from taskboard.db.database import async_session_factory
from taskboard.models.notification import Notification, NOTIFICATION_TYPES, RELATED_TYPES
from taskboard.models.board import Board, board_users
from taskboard.models.card import Card, Comment
from taskboard.models.user import User
from taskboard.core.exceptions import ValidationError, NotFoundError
from taskboard.logs import debug_logger
from taskboard.logs.server_log import api_logger

MAX_UNREAD = 50


class NotificationService:
    """Notification inbox of a user"""

    @staticmethod
    async def create(
        db: AsyncSession,
        user_id: Optional[int],
        message: Optional[str],
        type: Optional[str],
        related_id: Optional[int] = None,
        related_type: Optional[str] = None
    ) -> Notification:
        if not user_id or not message or not type:
            raise ValidationError("User ID, message, and type are required")
        if type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Invalid notification type: {type}")
        if related_type is not None and related_type not in RELATED_TYPES:
            raise ValidationError(f"Invalid related type: {related_type}")

        notification = Notification(
            user_id=user_id,
            message=message[:255],
            type=type,
            related_id=related_id,
            related_type=related_type,
            is_read=False,
        )
        db.add(notification)
        await db.commit()
        await db.refresh(notification)
        return notification

    @staticmethod
    async def get_all(
        db: AsyncSession,
        user_id: int,
        limit: int = 50,
        skip: int = 0
    ) -> Tuple[List[Notification], int]:
        """Page of notifications, newest first, with the total count"""
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        total = await db.scalar(
            select(func.count(Notification.id)).where(Notification.user_id == user_id)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def get_unread(db: AsyncSession, user_id: int) -> List[Notification]:
        query = (
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(MAX_UNREAD)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def mark_as_read(db: AsyncSession, user_id: int, notification_ids: List[int]) -> int:
        """Mark the given notifications read; ids of other users are ignored"""
        if not notification_ids:
            raise ValidationError("Notification IDs array is required")

        stmt = (
            update(Notification)
            .where(Notification.id.in_(notification_ids), Notification.user_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount

    @staticmethod
    async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount

    @staticmethod
    async def delete(db: AsyncSession, user_id: int, notification_id: int) -> None:
        stmt = delete(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Notification not found or access denied")
        await db.commit()


def extract_mentions(text: str, candidates: Iterable[User]) -> List[User]:
    """Users mentioned in ``text`` as ``@name`` or ``@email``, ignoring case"""
    lowered = (text or "").lower()
    mentioned = []
    for user in candidates:
        handles = [user.email.lower()]
        if user.name:
            handles.append(user.name.lower())
        for handle in handles:
            if re.search(r"@" + re.escape(handle) + r"(?![\w.@-])", lowered):
                mentioned.append(user)
                break
    return mentioned


async def notify_card_assignment(card_id: int, assigner_id: int, user_ids: List[int]) -> None:
    """Tell each newly assigned user about the card; the assigner is skipped"""
    targets = [user_id for user_id in user_ids if user_id != assigner_id]
    if not targets:
        return

    try:
        async with async_session_factory() as db:
            card = await db.get(Card, card_id)
            assigner = await db.get(User, assigner_id)
            if card is None or assigner is None:
                return
            for user_id in targets:
                await NotificationService.create(
                    db,
                    user_id=user_id,
                    message=f'{assigner.name} assigned you to "{card.title}"',
                    type="card",
                    related_id=card.id,
                    related_type="card",
                )
        debug_logger.info(f"Assignment notifications for card {card_id}: {targets}")
    except Exception as e:
        api_logger.error(f"Failed to notify assignment on card {card_id}: {str(e)}")


async def notify_comment_mentions(comment_id: int) -> None:
    """Notify board participants mentioned in a comment, except its author"""
    try:
        async with async_session_factory() as db:
            comment = await db.get(Comment, comment_id)
            if comment is None:
                return
            card = await db.get(Card, comment.card_id)
            board = await db.get(Board, card.board_id) if card else None
            if board is None:
                return

            author = await db.get(User, comment.user_id)
            participants = await _board_participants(db, board)
            mentioned = [
                user for user in extract_mentions(comment.text, participants)
                if user.id != comment.user_id
            ]
            for user in mentioned:
                await NotificationService.create(
                    db,
                    user_id=user.id,
                    message=f'{author.name} mentioned you in a comment on "{card.title}"',
                    type="comment",
                    related_id=card.id,
                    related_type="card",
                )
        if mentioned:
            debug_logger.info(f"Mention notifications for comment {comment_id}: {[u.id for u in mentioned]}")
    except Exception as e:
        api_logger.error(f"Failed to notify mentions of comment {comment_id}: {str(e)}")


async def notify_board_member_added(board_id: int, adder_id: int, member_id: int) -> None:
    if member_id == adder_id:
        return

    try:
        async with async_session_factory() as db:
            board = await db.get(Board, board_id)
            adder = await db.get(User, adder_id)
            if board is None or adder is None:
                return
            await NotificationService.create(
                db,
                user_id=member_id,
                message=f'{adder.name} added you to board "{board.title}"',
                type="board",
                related_id=board.id,
                related_type="board",
            )
        debug_logger.info(f"Member notification for user {member_id} on board {board_id}")
    except Exception as e:
        api_logger.error(f"Failed to notify member {member_id} of board {board_id}: {str(e)}")


async def _board_participants(db: AsyncSession, board: Board) -> List[User]:
    member_ids = select(board_users.c.user_id).where(board_users.c.board_id == board.id)
    query = select(User).where((User.id == board.owner_id) | User.id.in_(member_ids))
    result = await db.execute(query)
    return list(result.scalars().all())
