import pytest

from taskboard.services.board_service import BoardService
from taskboard.services.card_service import CardService
from taskboard.services.comment_service import CommentService
from taskboard.core.exceptions import AccessDeniedError, NotFoundError, ValidationError


class TestCommentService:
    """Comments on cards"""

    @pytest.mark.asyncio
    async def test_members_comment_and_authors_edit(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        await BoardService.add_member(db, users.alice.id, board.id, users.bob.id)
        card, _ = await CardService.create(db, users.alice.id, board.id, "Discuss")

        comment = await CommentService.create(db, users.bob.id, card.id, "  looks good  ")
        assert comment.text == "looks good"
        assert comment.author.id == users.bob.id
        assert comment.card.id == card.id

        edited = await CommentService.update(db, users.bob.id, comment.id, "looks great")
        assert edited.text == "looks great"

    @pytest.mark.asyncio
    async def test_owner_can_not_edit_or_delete_others_comments(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        await BoardService.add_member(db, users.alice.id, board.id, users.bob.id)
        card, _ = await CardService.create(db, users.alice.id, board.id, "Discuss")
        comment = await CommentService.create(db, users.bob.id, card.id, "mine")

        with pytest.raises(AccessDeniedError):
            await CommentService.update(db, users.alice.id, comment.id, "hijacked")
        with pytest.raises(AccessDeniedError):
            await CommentService.delete(db, users.alice.id, comment.id)

        deleted = await CommentService.delete(db, users.bob.id, comment.id)
        assert deleted.card_id == card.id
        with pytest.raises(NotFoundError, match="Comment not found"):
            await CommentService.delete(db, users.bob.id, comment.id)

    @pytest.mark.asyncio
    async def test_create_checks_card_access_and_text(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Discuss")

        with pytest.raises(NotFoundError, match="Card not found"):
            await CommentService.create(db, users.carol.id, card.id, "hello")
        with pytest.raises(NotFoundError, match="Card not found"):
            await CommentService.create(db, users.alice.id, 999, "hello")
        with pytest.raises(ValidationError):
            await CommentService.create(db, users.alice.id, card.id, "   ")
