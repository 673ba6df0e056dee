from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.schemas.notification import (
    NotificationResponse,
    NotificationList,
    MarkReadRequest,
    MessageResponse,
)
from taskboard.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def get_notifications(
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """All notifications of the current user, newest first"""
    notifications, total = await NotificationService.get_all(db, current_user.id, limit=limit, skip=skip)
    return {"notifications": notifications, "total": total, "limit": limit, "skip": skip}


@router.get("/unread", response_model=List[NotificationResponse])
async def get_unread_notifications(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await NotificationService.get_unread(db, current_user.id)


@router.post("/mark-read", response_model=MessageResponse)
async def mark_as_read(
    request: MarkReadRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await NotificationService.mark_as_read(db, current_user.id, request.notification_ids)
    return {"message": "Notifications marked as read"}


@router.post("/mark-all-read", response_model=MessageResponse)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await NotificationService.mark_all_as_read(db, current_user.id)
    return {"message": "All notifications marked as read"}


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await NotificationService.delete(db, current_user.id, notification_id)
    return {"message": "Notification deleted successfully"}
