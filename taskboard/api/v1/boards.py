from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.board import (
    BoardCreate,
    BoardUpdate,
    BoardMemberAdd,
    BoardResponse,
    BoardCompleteResponse,
    BoardsResponse,
)
from taskboard.schemas.notification import MessageResponse
from taskboard.services.board_service import BoardService
from taskboard.services.notification_service import notify_board_member_added

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


@router.get("", response_model=BoardsResponse)
async def get_boards(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Boards the current user owns or is a member of"""
    boards = await BoardService.list_for_user(db, current_user.id)
    return {"boards": boards, "total": len(boards)}


@router.get("/{board_id}", response_model=BoardCompleteResponse)
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Board with its lists and cards"""
    return await BoardService.get_for_user(db, current_user.id, board_id)


@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new board owned by the current user"""
    return await BoardService.create(
        db,
        owner_id=current_user.id,
        title=board_create.title,
        description=board_create.description,
    )


@router.put("/{board_id}", response_model=BoardResponse)
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update title, description or labels of a board"""
    labels = None
    if board_update.labels is not None:
        labels = [label.model_dump() for label in board_update.labels]

    return await BoardService.update(
        db,
        user_id=current_user.id,
        board_id=board_id,
        title=board_update.title,
        description=board_update.description,
        labels=labels,
    )


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a board with all its lists and cards (owner only)"""
    await BoardService.delete(db, current_user.id, board_id)
    return {"message": "Board deleted successfully"}


@router.post("/{board_id}/members", response_model=BoardResponse)
async def add_member(
    board_id: int,
    member: BoardMemberAdd,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Invite a user to the board"""
    board = await BoardService.add_member(db, current_user.id, board_id, member.member_id)
    background_tasks.add_task(notify_board_member_added, board_id, current_user.id, member.member_id)
    return board


@router.delete("/{board_id}/members/{member_id}", response_model=BoardResponse)
async def remove_member(
    board_id: int,
    member_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Remove a member from the board (owner only)"""
    return await BoardService.remove_member(db, current_user.id, board_id, member_id)


@router.post("/{board_id}/leave", response_model=MessageResponse)
async def leave_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Leave a board the current user is a member of"""
    await BoardService.leave(db, current_user.id, board_id)
    return {"message": "Left the board"}
