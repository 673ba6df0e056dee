from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.models.card import Card, Comment
from taskboard.services.access_service import AccessGate
from taskboard.core.exceptions import ValidationError, NotFoundError
from taskboard.logs import debug_logger, log_function


class CommentService:
    """Comments on cards; writes after creation are reserved to the author"""

    @staticmethod
    async def load(db: AsyncSession, comment_id: int) -> Optional[Comment]:
        query = (
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.author), selectinload(Comment.card))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _get_for_author(db: AsyncSession, user_id: int, comment_id: int) -> Comment:
        comment = await CommentService.load(db, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        AccessGate.ensure_comment_author(comment, user_id)
        return comment

    @staticmethod
    @log_function()
    async def create(db: AsyncSession, user_id: int, card_id: int, text: str) -> Comment:
        """Comment on a card of a board the user can access"""
        if not text or not text.strip():
            raise ValidationError("Comment text is required")

        card = await db.get(Card, card_id)
        if card is None:
            raise NotFoundError("Card not found")
        await AccessGate.get_accessible_board(db, user_id, card.board_id, message="Card not found")

        comment = Comment(text=text.strip(), card_id=card_id, user_id=user_id)
        db.add(comment)
        await db.commit()

        debug_logger.info(f"Comment {comment.id} added to card {card_id} by user {user_id}")
        return await CommentService.load(db, comment.id)

    @staticmethod
    @log_function()
    async def update(db: AsyncSession, user_id: int, comment_id: int, text: str) -> Comment:
        if not text or not text.strip():
            raise ValidationError("Comment text is required")

        comment = await CommentService._get_for_author(db, user_id, comment_id)
        comment.text = text.strip()
        comment.updated_at = datetime.utcnow()
        await db.commit()

        return await CommentService.load(db, comment_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, user_id: int, comment_id: int) -> Comment:
        """Delete a comment; returns it so callers still know its card"""
        comment = await CommentService._get_for_author(db, user_id, comment_id)

        await db.execute(delete(Comment).where(Comment.id == comment_id))
        await db.commit()

        debug_logger.info(f"Comment {comment_id} deleted by user {user_id}")
        return comment
