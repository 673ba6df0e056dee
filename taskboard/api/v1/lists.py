from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.board_list import (
    ListCreate,
    ListUpdate,
    ListReorder,
    ListResponse,
    ListDetailResponse,
)
from taskboard.schemas.notification import MessageResponse
from taskboard.services.list_service import ListService

router = APIRouter(
    prefix="/lists",
    tags=["lists"],
)


@router.post("", response_model=ListDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_list(
    list_create: ListCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Append a list to a board"""
    return await ListService.create(db, current_user.id, list_create.board_id, list_create.title)


@router.post("/reorder", response_model=List[ListResponse])
async def reorder_lists(
    reorder: ListReorder,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Set the order of several lists of a board at once"""
    return await ListService.reorder(
        db,
        current_user.id,
        reorder.board_id,
        [item.model_dump() for item in reorder.list_orders],
    )


@router.put("/{list_id}", response_model=ListDetailResponse)
async def update_list(
    list_id: int,
    list_update: ListUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ListService.update(
        db,
        current_user.id,
        list_id,
        title=list_update.title,
        order=list_update.order,
    )


@router.delete("/{list_id}", response_model=MessageResponse)
async def delete_list(
    list_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a list together with its cards"""
    await ListService.delete(db, current_user.id, list_id)
    return {"message": "List deleted successfully"}
