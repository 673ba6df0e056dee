from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from taskboard.models.card import CardStatus, CardPriority
from taskboard.schemas.auth import UserProfile
from taskboard.schemas.comment import CommentResponse


def naive_utc(value):
    """Due dates are stored as naive UTC"""
    if isinstance(value, str) and value.endswith('Z'):
        value = value[:-1] + '+00:00'
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = (value - value.utcoffset()).replace(tzinfo=None)
    return value


class CardCreate(BaseModel):
    """Schema for card creation"""
    board_id: int
    title: str = Field(..., min_length=1)
    list_id: Optional[int] = None
    status: Optional[CardStatus] = None
    priority: Optional[CardPriority] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    labels: Optional[List[str]] = None
    assignee_ids: Optional[List[int]] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return naive_utc(value)


class CardUpdate(BaseModel):
    """Schema for card update; only fields that are sent are applied"""
    title: Optional[str] = None
    description: Optional[str] = None
    list_id: Optional[int] = None
    order: Optional[int] = None
    status: Optional[CardStatus] = None
    priority: Optional[CardPriority] = None
    due_date: Optional[datetime] = None
    labels: Optional[List[str]] = None
    assignee_ids: Optional[List[int]] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return naive_utc(value)


class CardMove(BaseModel):
    """Schema for a drag-and-drop move"""
    card_id: int
    new_order: int
    new_list_id: Optional[int] = None
    status: Optional[CardStatus] = None


class CardResponse(BaseModel):
    """Schema for card response"""
    id: int
    title: str
    description: str = ""
    list_id: Optional[int] = None
    board_id: int
    order: int
    status: CardStatus
    priority: CardPriority
    labels: List[str] = []
    due_date: Optional[datetime] = None
    assignees: List[UserProfile] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CardDetailResponse(CardResponse):
    """Card with its comments, newest first"""
    comments: List[CommentResponse] = []


class CardMoveResponse(BaseModel):
    card: CardResponse
    from_list_id: Optional[int] = None

