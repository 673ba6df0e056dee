from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from taskboard.schemas.notification import MessageResponse
from taskboard.services.comment_service import CommentService
from taskboard.services.notification_service import notify_comment_mentions

router = APIRouter(
    prefix="/comments",
    tags=["comments"],
)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Comment on a card; mentioned board participants are notified"""
    comment = await CommentService.create(db, current_user.id, comment_data.card_id, comment_data.text)
    background_tasks.add_task(notify_comment_mentions, comment.id)
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Edit a comment (author only)"""
    return await CommentService.update(db, current_user.id, comment_id, comment_data.text)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a comment (author only)"""
    await CommentService.delete(db, current_user.id, comment_id)
    return {"message": "Comment deleted successfully"}
