import pytest
from sqlalchemy import select

from taskboard.models.board_list import list_cards
from taskboard.models.card import CardStatus, CardPriority
from taskboard.services.board_service import BoardService
from taskboard.services.list_service import ListService
from taskboard.services.card_service import CardService
from taskboard.services.comment_service import CommentService
from taskboard.core.exceptions import ValidationError, NotFoundError


async def list_card_ids(db, list_id):
    result = await db.execute(select(list_cards.c.card_id).where(list_cards.c.list_id == list_id))
    return sorted(result.scalars().all())


class TestCardCreate:
    """Card creation and list placement"""

    @pytest.mark.asyncio
    async def test_sequential_creates_get_increasing_order(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")

        cards = []
        for number in range(4):
            card, _ = await CardService.create(db, users.alice.id, board.id, f"Card {number}", list_id=todo.id)
            cards.append(card)

        assert [card.order for card in cards] == [0, 1, 2, 3]
        assert await list_card_ids(db, todo.id) == sorted(card.id for card in cards)

    @pytest.mark.asyncio
    async def test_defaults(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")

        card, assigned = await CardService.create(db, users.alice.id, board.id, "Loose")

        assert card.status == CardStatus.TODO
        assert card.priority == CardPriority.MEDIUM
        assert card.list_id is None
        assert card.labels == []
        assert assigned == []

    @pytest.mark.asyncio
    async def test_status_places_card_in_matching_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        await ListService.create(db, users.alice.id, board.id, "Sprint 1")
        done = await ListService.create(db, users.alice.id, board.id, "Done")

        card, _ = await CardService.create(db, users.alice.id, board.id, "Ship it", status="done")

        assert card.list_id == done.id
        assert card.status == CardStatus.DONE
        assert await list_card_ids(db, done.id) == [card.id]

    @pytest.mark.asyncio
    async def test_status_without_matching_list_leaves_card_unlisted(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        await ListService.create(db, users.alice.id, board.id, "Sprint 1")

        card, _ = await CardService.create(db, users.alice.id, board.id, "Review me", status="review")

        assert card.list_id is None

    @pytest.mark.asyncio
    async def test_invalid_values_are_rejected(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        other = await BoardService.create(db, users.bob.id, "Other")
        foreign = await ListService.create(db, users.bob.id, other.id, "Foreign")

        with pytest.raises(ValidationError):
            await CardService.create(db, users.alice.id, board.id, "x", status="blocked")
        with pytest.raises(ValidationError):
            await CardService.create(db, users.alice.id, board.id, "x", priority="critical")
        with pytest.raises(ValidationError):
            await CardService.create(db, users.alice.id, board.id, " ")
        with pytest.raises(NotFoundError):
            await CardService.create(db, users.alice.id, board.id, "x", list_id=foreign.id)

    @pytest.mark.asyncio
    async def test_assignees(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")

        card, assigned = await CardService.create(
            db, users.alice.id, board.id, "Pair", assignee_ids=[users.bob.id, users.carol.id, users.bob.id]
        )

        assert [user.id for user in card.assignees] == [users.bob.id, users.carol.id]
        assert assigned == [users.bob.id, users.carol.id]
        with pytest.raises(ValidationError, match="Assignee not found"):
            await CardService.create(db, users.alice.id, board.id, "Ghost", assignee_ids=[999])


class TestCardUpdate:
    """Partial updates, status relocation and explicit moves"""

    @pytest.mark.asyncio
    async def test_status_change_relocates_to_matching_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        sprint = await ListService.create(db, users.alice.id, board.id, "Sprint 1")
        done = await ListService.create(db, users.alice.id, board.id, "Done")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Ship it", list_id=sprint.id)

        card, _ = await CardService.update(db, users.alice.id, card.id, status="done")

        assert card.status == CardStatus.DONE
        assert card.list_id == done.id
        assert await list_card_ids(db, sprint.id) == []
        assert await list_card_ids(db, done.id) == [card.id]

    @pytest.mark.asyncio
    async def test_status_change_without_match_keeps_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        sprint = await ListService.create(db, users.alice.id, board.id, "Sprint 1")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Ship it", list_id=sprint.id)

        card, _ = await CardService.update(db, users.alice.id, card.id, status="review")

        assert card.status == CardStatus.REVIEW
        assert card.list_id == sprint.id

    @pytest.mark.asyncio
    async def test_explicit_list_wins_over_status_match(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        sprint = await ListService.create(db, users.alice.id, board.id, "Sprint 1")
        done = await ListService.create(db, users.alice.id, board.id, "Done")
        archive = await ListService.create(db, users.alice.id, board.id, "Archive")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Ship it", list_id=sprint.id)

        card, _ = await CardService.update(db, users.alice.id, card.id, status="done", list_id=archive.id)

        assert card.list_id == archive.id
        assert await list_card_ids(db, done.id) == []
        assert await list_card_ids(db, sprint.id) == []
        assert await list_card_ids(db, archive.id) == [card.id]

    @pytest.mark.asyncio
    async def test_list_id_none_unlists_card(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        sprint = await ListService.create(db, users.alice.id, board.id, "Sprint 1")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Ship it", list_id=sprint.id)

        card, _ = await CardService.update(db, users.alice.id, card.id, list_id=None)

        assert card.list_id is None
        assert await list_card_ids(db, sprint.id) == []

    @pytest.mark.asyncio
    async def test_plain_fields_and_new_assignees(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        card, _ = await CardService.create(
            db, users.alice.id, board.id, "Draft", assignee_ids=[users.bob.id]
        )

        card, newly_assigned = await CardService.update(
            db,
            users.alice.id,
            card.id,
            title="Final",
            description=None,
            labels=["a"],
            priority="urgent",
            assignee_ids=[users.bob.id, users.carol.id],
        )

        assert card.title == "Final"
        assert card.description == ""
        assert card.labels == ["a"]
        assert card.priority == CardPriority.URGENT
        assert newly_assigned == [users.carol.id]

    @pytest.mark.asyncio
    async def test_stranger_can_not_update(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Draft")

        with pytest.raises(NotFoundError, match="Card not found"):
            await CardService.update(db, users.carol.id, card.id, title="Mine now")


class TestCardMove:
    """Drag and drop"""

    @pytest.mark.asyncio
    async def test_move_to_list_sets_order(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")
        doing = await ListService.create(db, users.alice.id, board.id, "Doing")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Move me", list_id=todo.id)

        moved, source = await CardService.move(db, users.alice.id, card.id, 3, new_list_id=doing.id)

        assert source == todo.id
        assert moved.list_id == doing.id
        assert moved.order == 3
        assert await list_card_ids(db, todo.id) == []
        assert await list_card_ids(db, doing.id) == [card.id]

    @pytest.mark.asyncio
    async def test_move_within_list_only_changes_order(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Stay", list_id=todo.id)

        moved, source = await CardService.move(db, users.alice.id, card.id, 0, new_list_id=todo.id)

        assert source == todo.id
        assert moved.list_id == todo.id
        assert moved.order == 0

    @pytest.mark.asyncio
    async def test_move_with_status_uses_matching_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")
        done = await ListService.create(db, users.alice.id, board.id, "Done")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Finish", list_id=todo.id)

        moved, _ = await CardService.move(db, users.alice.id, card.id, 1, status="done")

        assert moved.status == CardStatus.DONE
        assert moved.list_id == done.id
        assert moved.order == 1

    @pytest.mark.asyncio
    async def test_move_with_status_and_list_prefers_explicit_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")
        done = await ListService.create(db, users.alice.id, board.id, "Done")
        doing = await ListService.create(db, users.alice.id, board.id, "Doing")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Finish", list_id=todo.id)

        moved, source = await CardService.move(
            db, users.alice.id, card.id, 2, new_list_id=doing.id, status="done"
        )

        assert source == todo.id
        assert moved.status == CardStatus.DONE
        assert moved.list_id == doing.id
        assert moved.order == 2
        assert await list_card_ids(db, doing.id) == [card.id]
        assert await list_card_ids(db, todo.id) == []
        assert await list_card_ids(db, done.id) == []

    @pytest.mark.asyncio
    async def test_move_to_list_without_status_change_ignores_title_match(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "todo")
        done = await ListService.create(db, users.alice.id, board.id, "Done")
        doing = await ListService.create(db, users.alice.id, board.id, "Doing")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Plain", list_id=todo.id)

        moved, source = await CardService.move(
            db, users.alice.id, card.id, 0, new_list_id=doing.id, status="todo"
        )

        assert source == todo.id
        assert moved.status == CardStatus.TODO
        assert moved.list_id == doing.id
        assert await list_card_ids(db, doing.id) == [card.id]
        assert await list_card_ids(db, todo.id) == []
        assert await list_card_ids(db, done.id) == []

    @pytest.mark.asyncio
    async def test_move_requires_order(self, db, users):
        with pytest.raises(ValidationError, match="New order is required"):
            await CardService.move(db, users.alice.id, 1, None)


class TestCardQueries:
    """Reading and deleting cards"""

    @pytest.mark.asyncio
    async def test_get_by_status(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        first, _ = await CardService.create(db, users.alice.id, board.id, "A", status="review")
        second, _ = await CardService.create(db, users.alice.id, board.id, "B", status="review")
        await CardService.create(db, users.alice.id, board.id, "C", status="todo")

        cards = await CardService.get_by_status(db, users.alice.id, board.id, "review")

        assert [card.id for card in cards] == [first.id, second.id]
        assert [card.order for card in cards] == [0, 1]
        with pytest.raises(ValidationError):
            await CardService.get_by_status(db, users.alice.id, board.id, "blocked")

    @pytest.mark.asyncio
    async def test_get_returns_comments_newest_first(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Discuss")
        older = await CommentService.create(db, users.alice.id, card.id, "older")
        newer = await CommentService.create(db, users.alice.id, card.id, "newer")

        loaded = await CardService.get(db, users.alice.id, card.id)

        assert [comment.id for comment in loaded.comments] == [newer.id, older.id]
        assert loaded.comments[0].author.id == users.alice.id

    @pytest.mark.asyncio
    async def test_delete_pulls_card_from_list(self, db, users):
        board = await BoardService.create(db, users.alice.id, "Roadmap")
        todo = await ListService.create(db, users.alice.id, board.id, "To Do")
        card, _ = await CardService.create(db, users.alice.id, board.id, "Gone", list_id=todo.id)

        deleted = await CardService.delete(db, users.alice.id, card.id)

        assert deleted.id == card.id
        assert await list_card_ids(db, todo.id) == []
        with pytest.raises(NotFoundError):
            await CardService.get(db, users.alice.id, card.id)
