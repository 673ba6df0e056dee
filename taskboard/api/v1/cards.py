from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.card import (
    CardCreate,
    CardUpdate,
    CardMove,
    CardResponse,
    CardDetailResponse,
    CardMoveResponse,
)
from taskboard.schemas.notification import MessageResponse
from taskboard.services.card_service import CardService
from taskboard.services.notification_service import notify_card_assignment

router = APIRouter(
    prefix="/cards",
    tags=["cards"],
)


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    card_create: CardCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a card; without list_id it lands in the list matching its status"""
    card, assigned = await CardService.create(
        db,
        current_user.id,
        card_create.board_id,
        card_create.title,
        list_id=card_create.list_id,
        status=card_create.status,
        priority=card_create.priority,
        description=card_create.description,
        due_date=card_create.due_date,
        labels=card_create.labels,
        assignee_ids=card_create.assignee_ids,
    )
    if assigned:
        background_tasks.add_task(notify_card_assignment, card.id, current_user.id, assigned)
    return card


@router.post("/move", response_model=CardMoveResponse)
async def move_card(
    card_move: CardMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Move a card to another position, list or status"""
    card, from_list_id = await CardService.move(
        db,
        current_user.id,
        card_move.card_id,
        new_order=card_move.new_order,
        new_list_id=card_move.new_list_id,
        status=card_move.status,
    )
    return {"card": card, "from_list_id": from_list_id}


@router.get("/board/{board_id}/status/{card_status}", response_model=List[CardResponse])
async def get_cards_by_status(
    board_id: int,
    card_status: str,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Cards of a board in one status, by order"""
    return await CardService.get_by_status(db, current_user.id, board_id, card_status)


@router.get("/{card_id}", response_model=CardDetailResponse)
async def get_card(
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await CardService.get(db, current_user.id, card_id)


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: int,
    card_update: CardUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Partial update; a status change may move the card to the matching list"""
    fields = card_update.model_dump(exclude_unset=True)
    card, newly_assigned = await CardService.update(db, current_user.id, card_id, **fields)
    if newly_assigned:
        background_tasks.add_task(notify_card_assignment, card.id, current_user.id, newly_assigned)
    return card


@router.delete("/{card_id}", response_model=MessageResponse)
async def delete_card(
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await CardService.delete(db, current_user.id, card_id)
    return {"message": "Card deleted successfully"}
